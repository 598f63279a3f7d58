"""Data models package."""

from .data_models import (
    ErrorInfo,
    ErrorKind,
    FileEntry,
    PullRequestResult,
    Repository,
    Stage,
    TestPlan,
)

__all__ = [
    'ErrorInfo',
    'ErrorKind',
    'FileEntry',
    'PullRequestResult',
    'Repository',
    'Stage',
    'TestPlan',
]
