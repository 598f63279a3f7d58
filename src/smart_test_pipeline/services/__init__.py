"""Services package for the smart test pipeline."""

from .base import GenerationService, SourceControlService
from .backend_service import BackendGenerationService, BackendSourceControlService
from .github_service import GitHubSourceControlService
from .llm_generation_service import LLMGenerationService

__all__ = [
    'SourceControlService',
    'GenerationService',
    'BackendSourceControlService',
    'BackendGenerationService',
    'GitHubSourceControlService',
    'LLMGenerationService',
]
