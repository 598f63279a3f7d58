"""Session state owned by the pipeline coordinator."""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from smart_test_pipeline.models.data_models import (
    ErrorInfo,
    FileEntry,
    Repository,
    Stage,
    TestPlan,
)
from smart_test_pipeline.pipeline.selection import SelectionSet


@dataclass
class SessionState:
    """Mutable state of one pipeline session.

    Only the coordinator writes to this object. Everyone else reads a
    `SessionSnapshot` taken through `snapshot()`.
    """
    credential: Optional[str] = None
    repositories: List[Repository] = field(default_factory=list)
    selected_repository: Optional[Repository] = None
    files: List[FileEntry] = field(default_factory=list)
    selection: SelectionSet = field(default_factory=SelectionSet)
    test_plans: List[TestPlan] = field(default_factory=list)
    active_plan: Optional[TestPlan] = None
    generated_code: str = ""
    active_stage: Stage = Stage.SETUP
    in_flight: bool = False
    last_error: Optional[ErrorInfo] = None

    def replace_repositories(self, repositories: List[Repository]) -> None:
        """Store a new repository list and drop everything that depended on the old one."""
        self.repositories = list(repositories)
        self.selected_repository = None
        self.replace_files([])

    def replace_files(self, files: List[FileEntry]) -> None:
        """Store a new file list; selection, plans and code no longer apply."""
        self.files = list(files)
        self.selection.clear()
        self.replace_plans([])

    def replace_plans(self, plans: List[TestPlan]) -> None:
        """Store new test plans; any generated code belonged to an old plan."""
        self.test_plans = list(plans)
        self.active_plan = None
        self.generated_code = ""

    def snapshot(self) -> "SessionSnapshot":
        return SessionSnapshot(
            has_credential=bool(self.credential),
            repositories=tuple(self.repositories),
            selected_repository=self.selected_repository,
            files=tuple(self.files),
            selected_files=self.selection.entries,
            test_plans=tuple(self.test_plans),
            active_plan=self.active_plan,
            generated_code=self.generated_code,
            active_stage=self.active_stage,
            in_flight=self.in_flight,
            last_error=self.last_error,
        )


@dataclass(frozen=True)
class SessionSnapshot:
    """Read-only copy of the session taken between mutations."""
    has_credential: bool
    repositories: Tuple[Repository, ...]
    selected_repository: Optional[Repository]
    files: Tuple[FileEntry, ...]
    selected_files: Tuple[FileEntry, ...]
    test_plans: Tuple[TestPlan, ...]
    active_plan: Optional[TestPlan]
    generated_code: str
    active_stage: Stage
    in_flight: bool
    last_error: Optional[ErrorInfo]

    def is_selected(self, path: str) -> bool:
        return any(entry.path == path for entry in self.selected_files)
