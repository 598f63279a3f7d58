import os

import pytest
from unittest.mock import Mock, patch

from smart_test_pipeline.config import Config
from smart_test_pipeline.core.service_factory import ServiceFactory
from smart_test_pipeline.exceptions import ConfigurationError, ValidationError
from smart_test_pipeline.generation.clients import AzureOpenAITransport, ClaudeTransport
from smart_test_pipeline.services import (
    BackendGenerationService,
    BackendSourceControlService,
    GitHubSourceControlService,
    LLMGenerationService,
)
from smart_test_pipeline.utils.user_feedback import UserFeedback


class TestServiceFactory:
    """Test suite for ServiceFactory."""

    def setup_method(self):
        """Set up test fixtures."""
        self.mock_feedback = Mock(spec=UserFeedback)
        self.config = Config(config_file=None)

    def test_defaults_use_backend_for_both_services(self):
        """The default configuration talks to the companion backend only."""
        # Act
        source_control, generation = ServiceFactory.create_services(self.config, feedback=self.mock_feedback)

        # Assert
        assert isinstance(source_control, BackendSourceControlService)
        assert isinstance(generation, BackendGenerationService)
        assert source_control.http.base_url == "http://localhost:3001/api"
        assert generation.http.timeout == 120.0

    def test_github_source_control_uses_config(self):
        # Arrange
        self.config.set('source_control.provider', 'github')
        self.config.set('source_control.tests_directory', '__tests__')
        self.config.set('source_control.base_branch', 'main')

        # Act
        source_control = ServiceFactory.create_source_control(self.config, self.mock_feedback)

        # Assert
        assert isinstance(source_control, GitHubSourceControlService)
        assert source_control.http.base_url == "https://api.github.com"
        assert source_control.tests_directory == '__tests__'
        assert source_control.base_branch == 'main'

    def test_invalid_provider_fails_validation(self):
        self.config.set('generation.provider', 'bedrock')

        with pytest.raises(ConfigurationError):
            ServiceFactory.create_services(self.config, feedback=self.mock_feedback)

    @patch('smart_test_pipeline.core.service_factory.ClaudeTransport')
    def test_claude_generation_with_api_key_parameter(self, mock_transport):
        """An explicit key builds a Claude transport wrapped in the LLM service."""
        # Arrange
        self.config.set('generation.provider', 'claude')
        transport = Mock()
        mock_transport.return_value = transport
        source_control = Mock()

        # Act
        generation = ServiceFactory.create_generation(self.config, source_control,
                                                      claude_api_key=" key ", feedback=self.mock_feedback)

        # Assert
        assert isinstance(generation, LLMGenerationService)
        assert generation.transport is transport
        assert generation.fetch_content is source_control.fetch_file_content
        mock_transport.assert_called_once_with(api_key="key", model="claude-sonnet-4-20250514", timeout=120.0)
        self.mock_feedback.info.assert_called_once_with("Using Claude API with model: claude-sonnet-4-20250514")

    @patch.dict(os.environ, {'CLAUDE_API_KEY': 'env-claude-key'})
    def test_claude_key_from_environment(self):
        self.config.set('generation.provider', 'claude')

        generation = ServiceFactory.create_generation(self.config, Mock(), feedback=self.mock_feedback)

        assert isinstance(generation.transport, ClaudeTransport)
        assert generation.transport.api_key == 'env-claude-key'

    @patch.dict(os.environ, {}, clear=True)
    def test_claude_without_key_raises(self):
        self.config.set('generation.provider', 'claude')

        with pytest.raises(ConfigurationError) as exc_info:
            ServiceFactory.create_generation(self.config, Mock(), feedback=self.mock_feedback)

        assert "CLAUDE_API_KEY" in exc_info.value.suggestion

    def test_azure_generation(self):
        # Arrange
        self.config.set('generation.provider', 'azure')

        # Act
        generation = ServiceFactory.create_generation(
            self.config, Mock(),
            azure_endpoint="https://res.openai.azure.com/", azure_api_key="k", azure_deployment="gpt-4o",
            feedback=self.mock_feedback,
        )

        # Assert
        assert isinstance(generation.transport, AzureOpenAITransport)
        assert generation.transport.endpoint == "https://res.openai.azure.com"
        assert generation.transport.deployment_name == "gpt-4o"

    @patch.dict(os.environ, {}, clear=True)
    def test_azure_incomplete_credentials_raise(self):
        self.config.set('generation.provider', 'azure')

        with pytest.raises(ConfigurationError):
            ServiceFactory.create_generation(self.config, Mock(), azure_endpoint="https://e",
                                             feedback=self.mock_feedback)

    def test_azure_endpoint_must_be_url(self):
        self.config.set('generation.provider', 'azure')

        with pytest.raises(ValidationError):
            ServiceFactory.create_generation(self.config, Mock(), azure_endpoint="res.openai.azure.com",
                                             azure_api_key="k", azure_deployment="d",
                                             feedback=self.mock_feedback)
