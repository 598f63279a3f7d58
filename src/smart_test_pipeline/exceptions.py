"""Custom exception classes for the smart test pipeline."""

from typing import Optional

from smart_test_pipeline.models.data_models import ErrorInfo, ErrorKind


class SmartTestPipelineError(Exception):
    """Base exception for all smart test pipeline errors."""

    def __init__(self, message: str, suggestion: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.suggestion = suggestion

    def __str__(self):
        result = self.message
        if self.suggestion:
            result += f"\n\nSuggestion: {self.suggestion}"
        return result


class ConfigurationError(SmartTestPipelineError):
    """Raised when there are configuration-related issues."""
    pass


class ValidationError(SmartTestPipelineError):
    """Raised when input validation fails."""
    pass


class StageLockedError(ValidationError):
    """Raised when navigating to a stage whose prerequisites are missing."""
    pass


class ServiceError(SmartTestPipelineError):
    """Raised by service adapters when a remote call fails."""

    def __init__(self, message: str, status_code: Optional[int] = None, suggestion: Optional[str] = None):
        super().__init__(message, suggestion)
        self.status_code = status_code


class PipelineError(SmartTestPipelineError):
    """Base class for errors produced by pipeline operations.

    Each subclass carries its taxonomy kind so the presentation layer can
    react to the kind while showing the human-readable message.
    """

    kind: ErrorKind

    def to_info(self) -> ErrorInfo:
        """Convert to the error record stored on the session."""
        return ErrorInfo(kind=self.kind, message=self.message)


class AuthenticationError(PipelineError):
    """Raised when the source-control credential is missing or rejected."""
    kind = ErrorKind.AUTHENTICATION


class RepositoryAccessError(PipelineError):
    """Raised when a repository cannot be selected or its files listed."""
    kind = ErrorKind.REPOSITORY_ACCESS


class PlanGenerationError(PipelineError):
    """Raised when test plans cannot be requested."""
    kind = ErrorKind.PLAN_GENERATION


class SourceFileNotFoundError(PipelineError):
    """Raised when a plan's source file is not among the listed files."""
    kind = ErrorKind.FILE_NOT_FOUND

    def __init__(self, message: str, file_name: Optional[str] = None, suggestion: Optional[str] = None):
        super().__init__(message, suggestion)
        self.file_name = file_name


class CodeGenerationError(PipelineError):
    """Raised when test code cannot be generated for a plan."""
    kind = ErrorKind.CODE_GENERATION


class PullRequestError(PipelineError):
    """Raised when the pull request cannot be opened."""
    kind = ErrorKind.PULL_REQUEST


class BusyError(PipelineError):
    """Raised when an operation is requested while another is in flight."""
    kind = ErrorKind.BUSY
