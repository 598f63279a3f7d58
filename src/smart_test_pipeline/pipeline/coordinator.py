"""Pipeline coordinator: sequences the network operations of one session.

Every network operation follows the same shape:

1. reject immediately with `BusyError` when another operation is in flight,
2. validate preconditions against the current state (typed error, no I/O),
3. raise the in-flight flag and clear the last error before the first await,
4. await the service call(s),
5. on success mutate the session in one synchronous step and advance the
   stage; on failure record the error and leave the data untouched.

The in-flight flag is always lowered when the operation ends, whatever the
outcome.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Callable, FrozenSet, Iterator, List, Optional, Type

from smart_test_pipeline.config import Config
from smart_test_pipeline.exceptions import (
    AuthenticationError,
    BusyError,
    CodeGenerationError,
    PipelineError,
    PlanGenerationError,
    PullRequestError,
    RepositoryAccessError,
    ServiceError,
    SourceFileNotFoundError,
    StageLockedError,
    ValidationError,
)
from smart_test_pipeline.models.data_models import (
    FileEntry,
    PullRequestResult,
    Repository,
    Stage,
    TestPlan,
)
from smart_test_pipeline.pipeline import stage_gate
from smart_test_pipeline.pipeline.session import SessionSnapshot, SessionState
from smart_test_pipeline.services.base import GenerationService, SourceControlService
from smart_test_pipeline.utils.naming import make_branch_name

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "JavaScript"


class PipelineCoordinator:
    """Owns one session and runs the five-stage workflow against two services."""

    def __init__(self, source_control: SourceControlService, generation: GenerationService,
                 config: Optional[Config] = None,
                 branch_namer: Callable[[], str] = make_branch_name):
        self.source_control = source_control
        self.generation = generation
        self.config = config
        self.default_language = (config.get('generation.default_language') if config else None) or DEFAULT_LANGUAGE
        self._branch_namer = branch_namer
        self._state = SessionState()

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------

    def snapshot(self) -> SessionSnapshot:
        return self._state.snapshot()

    def reachable_stages(self) -> FrozenSet[Stage]:
        return stage_gate.reachable_stages(self._state)

    @property
    def current_stage(self) -> Stage:
        return stage_gate.current_stage(self._state)

    @property
    def in_flight(self) -> bool:
        return self._state.in_flight

    # ------------------------------------------------------------------
    # Network operations
    # ------------------------------------------------------------------

    async def authenticate(self, token: str) -> List[Repository]:
        """List repositories for `token` and move to the repositories stage."""
        self._ensure_idle()
        token = (token or "").strip()
        if not token:
            raise self._reject(AuthenticationError(
                "Please enter your GitHub token",
                suggestion="Create a personal access token with 'repo' scope and pass it with --token."
            ))

        with self._operation("authenticate", AuthenticationError,
                             "Failed to connect to GitHub. Please check your token"):
            repositories = await self.source_control.list_repositories(token)

        self._state.credential = token
        self._state.replace_repositories(repositories)
        self._state.active_stage = Stage.REPOSITORIES
        logger.info(f"Authenticated; {len(repositories)} repositories available")
        return list(repositories)

    async def select_repository(self, repository: Repository) -> List[FileEntry]:
        """List the files of `repository` and make it the selected one."""
        self._ensure_idle()
        if repository not in self._state.repositories:
            raise self._reject(RepositoryAccessError(
                f"Repository '{getattr(repository, 'full_name', repository)}' is not in the listed repositories",
                suggestion="Authenticate first and pick one of the listed repositories."
            ))

        with self._operation("select_repository", RepositoryAccessError,
                             "Failed to fetch repository files"):
            files = await self.source_control.list_files(
                self._state.credential, repository.owner, repository.repo_name
            )

        self._state.selected_repository = repository
        self._state.replace_files(files)
        self._state.active_stage = Stage.FILES
        logger.info(f"Selected {repository.full_name}; {len(files)} files listed")
        return list(files)

    async def request_plans(self) -> List[TestPlan]:
        """Ask the generation service for test plans covering the selected files."""
        self._ensure_idle()
        if self._state.selected_repository is None:
            raise self._reject(PlanGenerationError(
                "No repository selected",
                suggestion="Select a repository before requesting test plans."
            ))
        if not self._state.selection:
            raise self._reject(PlanGenerationError(
                "Please select at least one file",
                suggestion="Toggle one or more files before requesting test plans."
            ))

        selected = self._state.selection.entries
        language = self._language_hint()
        with self._operation("request_plans", PlanGenerationError,
                             "Failed to generate test summaries"):
            plans = await self.generation.generate_plans(selected, language)
            if not plans:
                raise ServiceError(
                    "No test plans were generated",
                    suggestion="Try again or select different files."
                )

        self._state.replace_plans(plans)
        self._state.active_stage = Stage.PLANS
        logger.info(f"Received {len(plans)} test plans for {len(selected)} files")
        return list(plans)

    async def request_code(self, plan: TestPlan) -> str:
        """Fetch the plan's source file and generate test code for it."""
        self._ensure_idle()
        if plan not in self._state.test_plans:
            raise self._reject(CodeGenerationError(
                f"Test plan '{getattr(plan, 'title', plan)}' is not one of the current plans",
                suggestion="Request test plans again and pick one from the new list."
            ))
        source = self._resolve_source_file(plan)

        language = self._language_hint()
        with self._operation("request_code", CodeGenerationError,
                             "Failed to generate test code"):
            content = await self.source_control.fetch_file_content(source.download_url)
            code = await self.generation.generate_code(plan, content, language)
            if not isinstance(code, str) or not code.strip():
                raise ServiceError("Generation service returned no test code")

        self._state.active_plan = plan
        self._state.generated_code = code
        self._state.active_stage = Stage.CODE
        logger.info(f"Generated {len(self._state.generated_code)} characters of test code for {plan.file}")
        return self._state.generated_code

    async def create_pull_request(self) -> PullRequestResult:
        """Open a pull request carrying the generated code on a fresh branch."""
        self._ensure_idle()
        plan = self._state.active_plan
        repository = self._state.selected_repository
        if plan is None or not self._state.generated_code or repository is None:
            raise self._reject(PullRequestError(
                "No test code to create PR",
                suggestion="Generate code for a test plan first."
            ))

        branch_name = self._branch_namer()
        code = self._state.generated_code
        with self._operation("create_pull_request", PullRequestError,
                             "Failed to create pull request"):
            result = await self.source_control.open_pull_request(
                self._state.credential, repository.owner, repository.repo_name,
                branch_name, plan.file, code
            )

        logger.info(f"Opened pull request #{result.number} on {repository.full_name} from {branch_name}")
        return result

    # ------------------------------------------------------------------
    # Local operations
    # ------------------------------------------------------------------

    def toggle_file_selection(self, entry: FileEntry) -> bool:
        """Toggle `entry` in the selection set. Returns True when now selected."""
        self._ensure_idle()
        if not any(f.path == entry.path for f in self._state.files):
            raise ValidationError(
                f"File '{entry.path}' is not listed in the selected repository",
                suggestion="Pick a file from the current file list."
            )
        return self._state.selection.toggle(entry)

    def clear_error(self) -> None:
        self._state.last_error = None

    def navigate(self, stage: Stage) -> Stage:
        """Move the display to an already unlocked stage."""
        if not stage_gate.is_reachable(self._state, stage):
            raise StageLockedError(
                f"The {stage.label} stage is not available yet",
                suggestion="Complete the previous steps first."
            )
        self._state.active_stage = stage
        return stage

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _ensure_idle(self) -> None:
        if self._state.in_flight:
            logger.debug("Rejected request while another operation is in flight")
            raise BusyError(
                "Another operation is still running",
                suggestion="Wait for it to finish, then try again."
            )

    def _reject(self, error: PipelineError) -> PipelineError:
        """Record a failure that happened before any network call."""
        self._state.last_error = error.to_info()
        logger.warning(f"{error.kind.value}: {error.message}")
        return error

    def _resolve_source_file(self, plan: TestPlan) -> FileEntry:
        source = next((f for f in self._state.files if f.name == plan.file), None)
        if source is None or not source.download_url:
            raise self._reject(SourceFileNotFoundError(
                f"File not found: {plan.file}",
                file_name=plan.file,
                suggestion="The plan refers to a file that is not in the current repository listing."
            ))
        return source

    def _language_hint(self) -> str:
        repository = self._state.selected_repository
        return (repository.language if repository else None) or self.default_language

    @contextmanager
    def _operation(self, name: str, error_cls: Type[PipelineError], failure_message: str) -> Iterator[None]:
        """Hold the in-flight flag around the service calls of one operation."""
        self._state.in_flight = True
        self._state.last_error = None
        logger.debug(f"{name} started")
        try:
            yield
        except Exception as e:
            detail = getattr(e, 'message', None) or str(e) or e.__class__.__name__
            error = error_cls(f"{failure_message}: {detail}", suggestion=getattr(e, 'suggestion', None))
            self._state.last_error = error.to_info()
            logger.warning(f"{name} failed: {detail}")
            raise error from e
        finally:
            self._state.in_flight = False
