"""Data models for the test pipeline."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class Stage(Enum):
    """Steps of the guided workflow, in order."""
    SETUP = 0
    REPOSITORIES = 1
    FILES = 2
    PLANS = 3
    CODE = 4

    @property
    def label(self) -> str:
        return _STAGE_LABELS[self]

    def __lt__(self, other: "Stage") -> bool:
        if not isinstance(other, Stage):
            return NotImplemented
        return self.value < other.value

    def __le__(self, other: "Stage") -> bool:
        if not isinstance(other, Stage):
            return NotImplemented
        return self.value <= other.value


_STAGE_LABELS = {
    Stage.SETUP: "Setup",
    Stage.REPOSITORIES: "Repositories",
    Stage.FILES: "Files",
    Stage.PLANS: "Test Plans",
    Stage.CODE: "Generated Code",
}


class ErrorKind(Enum):
    """Kinds of errors an operation can end with."""
    AUTHENTICATION = "AuthenticationError"
    REPOSITORY_ACCESS = "RepositoryAccessError"
    PLAN_GENERATION = "PlanGenerationError"
    FILE_NOT_FOUND = "FileNotFoundError"
    CODE_GENERATION = "CodeGenerationError"
    PULL_REQUEST = "PullRequestError"
    BUSY = "BusyError"


@dataclass(frozen=True)
class ErrorInfo:
    """The error currently shown to the user."""
    kind: ErrorKind
    message: str


@dataclass(frozen=True)
class Repository:
    """A repository visible to the credential."""
    id: Any
    name: str
    full_name: str  # 'owner/name'
    language: Optional[str] = None
    description: Optional[str] = None

    @property
    def owner(self) -> str:
        return self.full_name.split('/', 1)[0]

    @property
    def repo_name(self) -> str:
        parts = self.full_name.split('/', 1)
        return parts[1] if len(parts) > 1 else self.name


@dataclass(frozen=True)
class FileEntry:
    """A file listed in the selected repository, keyed by path."""
    path: str
    name: str
    size: int = 0
    download_url: Optional[str] = None

    def to_payload(self) -> Dict[str, Any]:
        """Serialize with the field names the generation backend expects."""
        return {
            'path': self.path,
            'name': self.name,
            'size': self.size,
            'download_url': self.download_url,
        }


@dataclass(frozen=True)
class TestPlan:
    """An AI-proposed description of the tests to write for one file."""
    __test__ = False  # not a pytest test class

    title: str
    description: str
    framework: str
    test_count: int
    file: str  # name of the originating file
    coverage: Tuple[str, ...] = field(default_factory=tuple)

    def to_payload(self) -> Dict[str, Any]:
        return {
            'title': self.title,
            'description': self.description,
            'framework': self.framework,
            'testCount': self.test_count,
            'file': self.file,
            'coverage': list(self.coverage),
        }


@dataclass(frozen=True)
class PullRequestResult:
    """Identifiers of an opened pull request."""
    number: int
    url: str
    branch_name: str = ""
