"""Abstract service contracts consumed by the pipeline coordinator.

Concrete services only perform I/O against the source-control host or the
generation backend and map payloads to data models. Sequencing, state and
error classification are handled by the coordinator.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Sequence

from smart_test_pipeline.models.data_models import (
    FileEntry,
    PullRequestResult,
    Repository,
    TestPlan,
)


class SourceControlService(ABC):
    """Source-control host access (repositories, files, pull requests)."""

    @abstractmethod
    async def list_repositories(self, credential: str) -> List[Repository]:
        """List repositories visible to the credential."""

    @abstractmethod
    async def list_files(self, credential: str, owner: str, repo_name: str) -> List[FileEntry]:
        """List file entries at the root of a repository."""

    @abstractmethod
    async def fetch_file_content(self, download_url: str) -> str:
        """Fetch the raw text of a file by its content reference."""

    @abstractmethod
    async def open_pull_request(self, credential: str, owner: str, repo_name: str,
                                branch_name: str, file_name: str, code: str) -> PullRequestResult:
        """Push `code` on a new branch and open a pull request for it."""


class GenerationService(ABC):
    """AI generation of test plans and test code."""

    @abstractmethod
    async def generate_plans(self, files: Sequence[FileEntry], language_hint: str) -> List[TestPlan]:
        """Propose test plans for the given files."""

    @abstractmethod
    async def generate_code(self, plan: TestPlan, file_content: str, language_hint: str) -> str:
        """Generate test code implementing `plan` for the given source text."""
