"""Command-line interface for the smart test pipeline."""

import argparse
import asyncio
import logging
import os
import sys
import traceback
from typing import List, Optional

from smart_test_pipeline.config import Config, GENERATION_PROVIDERS, SOURCE_CONTROL_PROVIDERS
from smart_test_pipeline.core import ServiceFactory
from smart_test_pipeline.exceptions import (
    PipelineError,
    SmartTestPipelineError,
    ValidationError,
)
from smart_test_pipeline.models.data_models import PullRequestResult, Stage
from smart_test_pipeline.pipeline import PipelineCoordinator
from smart_test_pipeline.utils.user_feedback import UserFeedback


def configure_logging(verbose: bool = False, quiet: bool = False):
    """Configure logging based on verbosity level."""
    if quiet:
        logging.basicConfig(level=logging.ERROR, format='%(message)s')
        logging.getLogger('urllib3').setLevel(logging.WARNING)
        logging.getLogger('requests').setLevel(logging.WARNING)
    elif verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
    else:
        # user-facing output goes through UserFeedback, logging only carries problems
        logging.basicConfig(level=logging.WARNING, format='%(levelname)s: %(message)s')
        logging.getLogger('urllib3').setLevel(logging.ERROR)
        logging.getLogger('requests').setLevel(logging.ERROR)
        logging.getLogger('smart_test_pipeline').setLevel(logging.ERROR)


logger = logging.getLogger(__name__)


def setup_argparse() -> argparse.ArgumentParser:
    """Set up command line argument parser."""
    parser = argparse.ArgumentParser(
        prog="smart-test-pipeline",
        description="Generate tests for files of a GitHub repository and submit them as a pull request",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    parser.add_argument(
        "mode",
        nargs='?',
        default='run',
        choices=['run', 'init-config'],
        help="Mode of operation"
    )
    parser.add_argument("--config", default=".testpipeline.yml", help="Configuration file (default: .testpipeline.yml)")
    parser.add_argument("--token", help="GitHub personal access token (can also be set via GITHUB_TOKEN env var)")

    parser.add_argument("--source-provider", choices=list(SOURCE_CONTROL_PROVIDERS),
                        help="Where repositories are read from and pull requests opened")
    parser.add_argument("--generation-provider", choices=list(GENERATION_PROVIDERS),
                        help="Which service generates test plans and code")
    parser.add_argument("--backend-url", help="Base URL of the companion backend API")
    parser.add_argument("--language", help="Language hint used when a repository reports none")

    parser.add_argument("--claude-api-key", help="Claude API key (can also be set via CLAUDE_API_KEY env var)")
    parser.add_argument("--claude-model", help="Claude model to use")
    parser.add_argument("--endpoint", help="Azure OpenAI endpoint URL")
    parser.add_argument("--api-key", help="Azure OpenAI API key")
    parser.add_argument("--deployment", help="Azure OpenAI deployment name")

    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")
    parser.add_argument("--quiet", "-q", action="store_true",
                        help="Minimal output mode - only show prompts, results and errors")
    return parser


def apply_cli_overrides(args, config: Config) -> None:
    """Copy explicit command-line settings over the loaded configuration."""
    overrides = {
        'source_control.provider': args.source_provider,
        'generation.provider': args.generation_provider,
        'source_control.backend_url': args.backend_url,
        'generation.default_language': args.language,
        'generation.claude.model': args.claude_model,
    }
    for key, value in overrides.items():
        if value:
            config.set(key, value)


def handle_init_config_mode(args, feedback: UserFeedback) -> None:
    config_path = args.config
    if os.path.exists(config_path) and not feedback.confirm(f"{config_path} exists. Overwrite?", default=False):
        feedback.info("Keeping the existing configuration file")
        return
    Config(config_file=None).create_sample_config(config_path)
    feedback.success(f"Sample configuration written to {config_path}")


def parse_indices(raw: str, upper: int) -> List[int]:
    """Parse '1,3-5' into zero-based indices within 1..upper."""
    indices: List[int] = []
    for part in raw.replace(' ', '').split(','):
        if not part:
            continue
        try:
            if '-' in part:
                start, end = (int(value) for value in part.split('-', 1))
                numbers = range(start, end + 1)
            else:
                numbers = [int(part)]
        except ValueError as e:
            raise ValidationError(f"'{part}' is not a number or range") from e
        for number in numbers:
            if not 1 <= number <= upper:
                raise ValidationError(f"{number} is out of range (1-{upper})")
            indices.append(number - 1)
    return indices


class InteractiveSession:
    """Drives a `PipelineCoordinator` from console prompts, one stage at a time."""

    def __init__(self, coordinator: PipelineCoordinator, feedback: UserFeedback, token: Optional[str] = None):
        self.coordinator = coordinator
        self.feedback = feedback
        self.token = token
        self.pull_request: Optional[PullRequestResult] = None
        self._done = False

    async def run(self) -> Optional[PullRequestResult]:
        handlers = {
            Stage.SETUP: self._setup,
            Stage.REPOSITORIES: self._repositories,
            Stage.FILES: self._files,
            Stage.PLANS: self._plans,
            Stage.CODE: self._code,
        }
        while not self._done:
            stage = self.coordinator.current_stage
            self.feedback.stage_bar(self.coordinator.reachable_stages(), stage)
            try:
                await handlers[stage]()
            except PipelineError as e:
                # the coordinator kept the previous state; the user may retry
                self.feedback.error(e.message, e.suggestion)
                self.coordinator.clear_error()
            except ValidationError as e:
                self.feedback.error(e.message, e.suggestion)
        return self.pull_request

    async def _setup(self):
        self.feedback.section_header("Connect to GitHub")
        token = self.token or self.feedback.ask("GitHub personal access token", password=True)
        self.token = None
        with self.feedback.status_spinner("Connecting..."):
            repositories = await self.coordinator.authenticate(token)
        if not repositories:
            self.feedback.warning("No repositories are visible to this token")
            self._done = not self.feedback.confirm("Try another token?", default=True)
        else:
            self.feedback.success(f"Found {len(repositories)} repositories")

    async def _repositories(self):
        snapshot = self.coordinator.snapshot()
        self.feedback.section_header("Select Repository")
        self.feedback.repositories_table(snapshot.repositories)
        choice = self.feedback.ask("Repository number ([bold]q[/bold] to quit)").strip().lower()
        if choice == 'q':
            self._done = True
            return
        index = parse_indices(choice, len(snapshot.repositories))
        if len(index) != 1:
            raise ValidationError("Pick exactly one repository")
        repository = snapshot.repositories[index[0]]
        with self.feedback.status_spinner(f"Listing files of {repository.full_name}..."):
            files = await self.coordinator.select_repository(repository)
        self.feedback.success(f"{len(files)} files in {repository.full_name}")

    async def _files(self):
        snapshot = self.coordinator.snapshot()
        self.feedback.section_header(f"Select Files for Testing - {snapshot.selected_repository.name}")
        self.feedback.files_table(snapshot.files, frozenset(entry.path for entry in snapshot.selected_files))
        choice = self.feedback.ask(
            "Numbers to toggle, [bold]g[/bold] to generate test plans, [bold]b[/bold] for repositories"
        ).strip().lower()
        if choice == 'b':
            self.coordinator.navigate(Stage.REPOSITORIES)
            return
        if choice == 'g':
            with self.feedback.status_spinner("Generating Test Plans..."):
                plans = await self.coordinator.request_plans()
            self.feedback.success(f"Received {len(plans)} test plans")
            return
        for index in parse_indices(choice, len(snapshot.files)):
            self.coordinator.toggle_file_selection(snapshot.files[index])

    async def _plans(self):
        snapshot = self.coordinator.snapshot()
        self.feedback.section_header("Generated Test Plans")
        self.feedback.test_plans_display(snapshot.test_plans)
        choice = self.feedback.ask("Plan number to generate code, [bold]b[/bold] for files").strip().lower()
        if choice == 'b':
            self.coordinator.navigate(Stage.FILES)
            return
        index = parse_indices(choice, len(snapshot.test_plans))
        if len(index) != 1:
            raise ValidationError("Pick exactly one test plan")
        plan = snapshot.test_plans[index[0]]
        with self.feedback.status_spinner(f"Generating test code for {plan.file}..."):
            await self.coordinator.request_code(plan)

    async def _code(self):
        snapshot = self.coordinator.snapshot()
        language = snapshot.selected_repository.language if snapshot.selected_repository else None
        self.feedback.code_display(snapshot.generated_code, language,
                                   title=snapshot.active_plan.title if snapshot.active_plan else "Generated Test Code")
        choice = self.feedback.ask(
            "[bold]p[/bold] to create a pull request, [bold]b[/bold] for test plans, [bold]q[/bold] to quit"
        ).strip().lower()
        if choice == 'b':
            self.coordinator.navigate(Stage.PLANS)
        elif choice == 'q':
            self._done = True
        elif choice == 'p':
            with self.feedback.status_spinner("Creating pull request..."):
                self.pull_request = await self.coordinator.create_pull_request()
            self.feedback.summary_panel("Pull request created", {
                "PR": f"#{self.pull_request.number}",
                "URL": self.pull_request.url,
                "Branch": self.pull_request.branch_name,
            })
            self._done = not self.feedback.confirm("Continue with another plan?", default=False)
            if not self._done:
                self.coordinator.navigate(Stage.PLANS)
        else:
            raise ValidationError(f"Unknown choice '{choice}'")


def main():
    """Main execution function."""
    feedback = None

    try:
        parser = setup_argparse()
        args = parser.parse_args()

        feedback = UserFeedback(verbose=args.verbose, quiet=args.quiet)
        configure_logging(verbose=args.verbose, quiet=args.quiet)
        feedback.brand_header("tests from your repository to a pull request")

        if args.mode == 'init-config':
            handle_init_config_mode(args, feedback)
            return

        config = Config(config_file=args.config)
        apply_cli_overrides(args, config)
        source_control, generation = ServiceFactory.create_services(
            config,
            claude_api_key=args.claude_api_key,
            azure_endpoint=args.endpoint,
            azure_api_key=args.api_key,
            azure_deployment=args.deployment,
            feedback=feedback,
        )
        coordinator = PipelineCoordinator(source_control, generation, config)
        session = InteractiveSession(coordinator, feedback, token=args.token or os.environ.get("GITHUB_TOKEN"))
        result = asyncio.run(session.run())

        if result is None:
            feedback.info("Finished without creating a pull request")

    except KeyboardInterrupt:
        if feedback:
            feedback.warning("Operation cancelled by user")
        else:
            print("\nOperation cancelled by user")
        sys.exit(130)

    except SmartTestPipelineError as e:
        if feedback:
            feedback.error(e.message, e.suggestion)
        else:
            print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    except Exception as e:
        if feedback:
            feedback.error(f"Unexpected error: {e}",
                           "This appears to be a bug. Please report it with the details below.")
            if feedback.verbose:
                feedback.error("Full traceback:", details=traceback.format_exc())
        else:
            print(f"Unexpected error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
