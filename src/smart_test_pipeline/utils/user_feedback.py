"""User feedback utilities for the interactive CLI."""

import logging
from contextlib import contextmanager
from typing import Any, Dict, FrozenSet, Iterator, Optional, Sequence

from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.syntax import Syntax
from rich.table import Table
from rich.text import Text
import rich.box

from smart_test_pipeline.models.data_models import FileEntry, Repository, Stage, TestPlan

logger = logging.getLogger(__name__)

# rich lexer names for the languages GitHub reports most often
_SYNTAX_LEXERS = {
    'javascript': 'javascript',
    'typescript': 'typescript',
    'python': 'python',
    'java': 'java',
    'go': 'go',
    'ruby': 'ruby',
    'c#': 'csharp',
    'php': 'php',
    'kotlin': 'kotlin',
    'rust': 'rust',
}


class StatusIcon:
    """Status icons for CLI display."""

    SUCCESS = "[bold green]✓[/bold green]"
    ERROR = "[bold red]✗[/bold red]"
    WARNING = "[bold yellow]⚠[/bold yellow]"
    INFO = "[bold blue]●[/bold blue]"
    DEBUG = "[dim]◦[/dim]"
    LOADING = "[bold cyan]◐[/bold cyan]"
    SELECTED = "[bold green]■[/bold green]"
    UNSELECTED = "[dim]□[/dim]"
    LOCKED = "[dim]○[/dim]"
    ACTIVE = "[bold bright_blue]◉[/bold bright_blue]"
    OPEN = "[cyan]●[/cyan]"


class UserFeedback:
    """Console output for the pipeline walkthrough."""

    def __init__(self, verbose: bool = False, quiet: bool = False, console: Optional[Console] = None):
        self.verbose = verbose
        self.quiet = quiet
        self.console = console or Console(stderr=False)
        self.error_console = Console(stderr=True) if console is None else console

    def success(self, message: str, details: Optional[str] = None):
        """Display success message with checkmark icon."""
        if not self.quiet:
            self.console.print(f"{StatusIcon.SUCCESS} {message}")
            if details and self.verbose:
                self._print_details(details, "green")

    def error(self, message: str, suggestion: Optional[str] = None, details: Optional[str] = None):
        """Display error message; shown even in quiet mode."""
        self.error_console.print(f"{StatusIcon.ERROR} [bold red]Error:[/bold red] {message}")

        if suggestion:
            self.error_console.print(f"  [yellow]Suggestion:[/yellow] {suggestion}")

        if details and self.verbose:
            self._print_details(details, "red", console=self.error_console)

    def warning(self, message: str, suggestion: Optional[str] = None):
        if not self.quiet:
            self.console.print(f"{StatusIcon.WARNING} [bold yellow]Warning:[/bold yellow] {message}")
            if suggestion:
                self.console.print(f"  [yellow]{suggestion}[/yellow]")

    def info(self, message: str, details: Optional[str] = None):
        if not self.quiet:
            self.console.print(f"{StatusIcon.INFO} {message}")
            if details and self.verbose:
                self._print_details(details, "blue")

    def debug(self, message: str, details: Optional[str] = None):
        """Display debug message (only in verbose mode)."""
        if self.verbose and not self.quiet:
            self.console.print(f"{StatusIcon.DEBUG} [dim]{message}[/dim]")
            if details:
                self._print_details(details, "dim")

    def section_header(self, title: str):
        if not self.quiet:
            panel = Panel(
                Align.center(Text(title, style="bold white")),
                border_style="bright_blue",
                padding=(0, 1),
            )
            self.console.print()
            self.console.print(panel)

    def brand_header(self, subtitle: str = ""):
        if not self.quiet:
            title_text = Text()
            title_text.append("Smart Test Pipeline", style="bold bright_blue")
            if subtitle:
                title_text.append(f" • {subtitle}", style="dim cyan")
            self.console.print()
            self.console.print(Panel(Align.center(title_text), border_style="bright_blue",
                                     box=rich.box.DOUBLE, padding=(1, 2)))

    @contextmanager
    def status_spinner(self, message: str, spinner_style: str = "dots") -> Iterator[Any]:
        """Show a spinner while a network operation is in flight."""
        if not self.quiet:
            with self.console.status(f"{StatusIcon.LOADING} {message}", spinner=spinner_style) as status:
                yield status
        else:
            yield None

    def summary_panel(self, title: str, items: Dict[str, Any], style: str = "green"):
        """Display a summary panel with key-value pairs; shown even in quiet mode."""
        content = [f"[bold]{key}:[/bold] {value}" for key, value in items.items()]
        self.console.print(Panel("\n".join(content), title=f"[bold]{title}[/bold]",
                                 border_style=style, padding=(1, 2)))

    def confirm(self, message: str, default: bool = False) -> bool:
        return Confirm.ask(message, default=default, console=self.console)

    def ask(self, message: str, default: Optional[str] = None, password: bool = False) -> str:
        if default is None:
            return Prompt.ask(message, password=password, console=self.console)
        return Prompt.ask(message, default=default, password=password, console=self.console)

    # ------------------------------------------------------------------
    # Pipeline renderers
    # ------------------------------------------------------------------

    def stage_bar(self, reachable: FrozenSet[Stage], current: Stage):
        """Show the five stages, marking the current and the unlocked ones."""
        if self.quiet:
            return
        parts = []
        for stage in Stage:
            if stage is current:
                parts.append(f"{StatusIcon.ACTIVE} [bold]{stage.label}[/bold]")
            elif stage in reachable:
                parts.append(f"{StatusIcon.OPEN} {stage.label}")
            else:
                parts.append(f"{StatusIcon.LOCKED} [dim]{stage.label}[/dim]")
        self.console.print("  [dim]→[/dim]  ".join(parts))

    def repositories_table(self, repositories: Sequence[Repository]):
        table = Table(title="Repositories", box=rich.box.ROUNDED, header_style="bold magenta")
        table.add_column("#", justify="right", style="dim", width=4)
        table.add_column("Repository", style="cyan")
        table.add_column("Language", style="green")
        table.add_column("Description", style="white", overflow="fold")
        for index, repo in enumerate(repositories, 1):
            table.add_row(str(index), repo.full_name, repo.language or "-", repo.description or "")
        self.console.print(table)

    def files_table(self, files: Sequence[FileEntry], selected_paths: FrozenSet[str]):
        table = Table(title=f"Files ({len(selected_paths)} selected)", box=rich.box.ROUNDED,
                      header_style="bold magenta")
        table.add_column("#", justify="right", style="dim", width=4)
        table.add_column("", width=2)
        table.add_column("File", style="cyan")
        table.add_column("Size", justify="right", style="dim")
        for index, entry in enumerate(files, 1):
            mark = StatusIcon.SELECTED if entry.path in selected_paths else StatusIcon.UNSELECTED
            table.add_row(str(index), mark, entry.path, f"{round(entry.size / 1024)}KB")
        self.console.print(table)

    def test_plans_display(self, plans: Sequence[TestPlan]):
        for index, plan in enumerate(plans, 1):
            body = [
                plan.description,
                "",
                f"[dim]Framework:[/dim] {plan.framework}   [dim]Tests:[/dim] {plan.test_count}"
                f"   [dim]File:[/dim] {plan.file}",
            ]
            if plan.coverage:
                body.append("[dim]Coverage:[/dim] " + ", ".join(f"[blue]{label}[/blue]" for label in plan.coverage))
            self.console.print(Panel("\n".join(body), title=f"[bold]{index}. {plan.title}[/bold]",
                                     title_align="left", border_style="cyan", padding=(0, 1)))

    def code_display(self, code: str, language: Optional[str] = None, title: str = "Generated Test Code"):
        lexer = _SYNTAX_LEXERS.get((language or "").lower(), "text")
        syntax = Syntax(code or "No code generated yet. Generate a test plan first.", lexer,
                        theme="monokai", line_numbers=True, word_wrap=True)
        self.console.print(Panel(syntax, title=f"[bold]{title}[/bold]", border_style="green"))

    def _print_details(self, details: str, style: str, console: Optional[Console] = None):
        target_console = console or self.console
        for line in details.split('\n'):
            if line.strip():
                target_console.print(f"  [dim]│[/dim] [{style}]{line}[/{style}]")
