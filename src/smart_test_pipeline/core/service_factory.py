"""Factory for creating the source control and generation services."""

import os
from typing import Optional, Tuple

from smart_test_pipeline.config import Config
from smart_test_pipeline.exceptions import ConfigurationError, ValidationError
from smart_test_pipeline.generation.clients import AzureOpenAITransport, ClaudeTransport, LLMTransport
from smart_test_pipeline.services.backend_service import BackendGenerationService, BackendSourceControlService
from smart_test_pipeline.services.base import GenerationService, SourceControlService
from smart_test_pipeline.services.github_service import GitHubSourceControlService
from smart_test_pipeline.services.llm_generation_service import LLMGenerationService
from smart_test_pipeline.utils.user_feedback import UserFeedback


class ServiceFactory:
    """Builds the two services the pipeline coordinator talks to."""

    @staticmethod
    def create_services(config: Config,
                        claude_api_key: Optional[str] = None,
                        azure_endpoint: Optional[str] = None,
                        azure_api_key: Optional[str] = None,
                        azure_deployment: Optional[str] = None,
                        feedback: Optional[UserFeedback] = None) -> Tuple[SourceControlService, GenerationService]:
        """Create services according to `source_control.provider` and `generation.provider`."""
        if feedback is None:
            feedback = UserFeedback()
        config.validate()

        source_control = ServiceFactory.create_source_control(config, feedback)
        generation = ServiceFactory.create_generation(
            config, source_control,
            claude_api_key=claude_api_key,
            azure_endpoint=azure_endpoint,
            azure_api_key=azure_api_key,
            azure_deployment=azure_deployment,
            feedback=feedback,
        )
        return source_control, generation

    @staticmethod
    def create_source_control(config: Config, feedback: UserFeedback) -> SourceControlService:
        provider = config.get('source_control.provider')
        timeout = float(config.get('source_control.timeout_seconds'))
        if provider == 'github':
            api_url = config.get('source_control.github_api_url')
            feedback.debug(f"Using GitHub REST API at {api_url}")
            return GitHubSourceControlService(
                api_url,
                timeout=timeout,
                tests_directory=config.get('source_control.tests_directory', 'tests'),
                base_branch=config.get('source_control.base_branch'),
                title_template=config.get('source_control.pull_request_title', 'Add generated tests for {file}'),
            )
        backend_url = config.get('source_control.backend_url')
        feedback.debug(f"Using backend API at {backend_url} for source control")
        return BackendSourceControlService(backend_url, timeout=timeout)

    @staticmethod
    def create_generation(config: Config, source_control: SourceControlService,
                          claude_api_key: Optional[str] = None,
                          azure_endpoint: Optional[str] = None,
                          azure_api_key: Optional[str] = None,
                          azure_deployment: Optional[str] = None,
                          feedback: Optional[UserFeedback] = None) -> GenerationService:
        feedback = feedback or UserFeedback()
        provider = config.get('generation.provider')
        timeout = float(config.get('generation.timeout_seconds'))

        if provider == 'backend':
            backend_url = config.get('source_control.backend_url')
            feedback.debug(f"Using backend API at {backend_url} for generation")
            return BackendGenerationService(backend_url, timeout=timeout)

        if provider == 'claude':
            transport = ServiceFactory._create_claude_transport(
                claude_api_key or os.environ.get("CLAUDE_API_KEY"), config, timeout, feedback
            )
        else:
            transport = ServiceFactory._create_azure_transport(
                azure_endpoint or os.environ.get("AZURE_OPENAI_ENDPOINT"),
                azure_api_key or os.environ.get("AZURE_OPENAI_API_KEY"),
                azure_deployment or os.environ.get("AZURE_OPENAI_DEPLOYMENT"),
                config, timeout, feedback,
            )

        return LLMGenerationService(
            transport,
            fetch_content=source_control.fetch_file_content,
            max_tokens=int(config.get('generation.max_tokens')),
            temperature=float(config.get('generation.temperature')),
            max_file_size_kb=float(config.get('generation.max_file_size_kb')),
        )

    @staticmethod
    def _create_claude_transport(api_key: Optional[str], config: Config, timeout: float,
                                 feedback: UserFeedback) -> LLMTransport:
        if not api_key or not api_key.strip():
            raise ConfigurationError(
                "No Claude API key provided",
                suggestion="Pass --claude-api-key or set the CLAUDE_API_KEY environment variable."
            )
        model = config.get('generation.claude.model')
        feedback.info(f"Using Claude API with model: {model}")
        return ClaudeTransport(api_key=api_key.strip(), model=model, timeout=timeout)

    @staticmethod
    def _create_azure_transport(endpoint: Optional[str], api_key: Optional[str], deployment: Optional[str],
                                config: Config, timeout: float, feedback: UserFeedback) -> LLMTransport:
        if not (endpoint and api_key and deployment):
            raise ConfigurationError(
                "Azure OpenAI credentials are incomplete",
                suggestion="Provide --endpoint, --api-key and --deployment, or set AZURE_OPENAI_ENDPOINT, "
                           "AZURE_OPENAI_API_KEY and AZURE_OPENAI_DEPLOYMENT."
            )
        if not endpoint.startswith(('http://', 'https://')):
            raise ValidationError(
                f"Invalid Azure OpenAI endpoint: {endpoint}",
                suggestion="Endpoint should start with 'https://' (e.g., https://your-resource.openai.azure.com/)"
            )
        feedback.info(f"Using Azure OpenAI deployment: {deployment}")
        return AzureOpenAITransport(
            endpoint=endpoint,
            api_key=api_key,
            deployment_name=deployment,
            api_version=config.get('generation.azure.api_version', '2024-10-21'),
            timeout=timeout,
        )
