"""Operator-facing output for a scaffolding run.

``Reporter`` implements the pipeline observer interface: it prints one line
per finished step (indented by nesting depth) and shows a spinner while a
step runs on an interactive terminal.  It also renders the final success
instructions, the failure panel, and usage errors.
"""

from __future__ import annotations

import traceback

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.status import Status

from create_grandstack_app.archive import ArchiveError
from create_grandstack_app.config import DOCS_URL, Configuration
from create_grandstack_app.git import GitError
from create_grandstack_app.installer import CompatibilityError, InstallError
from create_grandstack_app.pipeline import RunResult, StepRecord, StepState
from create_grandstack_app.release import ReleaseError
from create_grandstack_app.utils import console as default_console
from create_grandstack_app.utils import format_duration, print_summary_table

# Errors whose message is self-explanatory; anything else also gets a traceback.
EXPECTED_ERRORS = (
    ReleaseError,
    ArchiveError,
    GitError,
    InstallError,
    CompatibilityError,
    OSError,
)

_SYMBOLS: dict[StepState, str] = {
    StepState.SUCCEEDED: "[green]✔[/green]",
    StepState.FAILED: "[red]✖[/red]",
    StepState.SKIPPED: "[yellow]↓[/yellow]",
    StepState.ABORTED: "[bright_black]○[/bright_black]",
}


class Reporter:
    """Renders pipeline progress and the final outcome with Rich."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or default_console
        self._status: Status | None = None

    # ------------------------------------------------------------------
    # Observer interface
    # ------------------------------------------------------------------

    def on_start(self, record: StepRecord) -> None:
        indent = "  " * record.depth
        if record.group:
            self.console.print(f"{indent}[cyan]❯[/cyan] {escape(record.title)}")
            return
        if self.console.is_terminal:
            self._status = self.console.status(f"{indent}{escape(record.title)}")
            self._status.start()

    def on_finish(self, record: StepRecord) -> None:
        self.stop_spinner()
        indent = "  " * record.depth
        symbol = _SYMBOLS.get(record.state, " ")
        title = escape(record.title)

        if record.state is StepState.SKIPPED:
            note = f"skipped: {record.reason}" if record.reason else "skipped"
            self.console.print(
                f"{indent}{symbol} {title} [bright_black]{escape(f'[{note}]')}[/bright_black]"
            )
        elif record.state is StepState.ABORTED:
            self.console.print(f"{indent}{symbol} [bright_black]{title}[/bright_black]")
        elif record.state is StepState.FAILED:
            self.console.print(f"{indent}{symbol} [red]{title}[/red]")
        else:
            self.console.print(
                f"{indent}{symbol} {title} [bright_black]({format_duration(record.duration)})[/bright_black]"
            )

    # ------------------------------------------------------------------
    # Run-level output
    # ------------------------------------------------------------------

    def start(self, config: Configuration) -> None:
        """Print the banner and a summary of the resolved options."""
        self.console.print("[bold green]Initializing Project...[/bold green]")
        print_summary_table(
            {
                "Directory": str(config.app_dir),
                "Template": f"{config.template} ({config.template_dir})",
                "Neo4j": f"{config.neo4j_uri} as {config.neo4j_user}",
                "Git": "yes" if config.git_init else "no",
                "Install": f"yes ({config.package_manager})" if config.run_install else "no",
            },
            title="GRANDstack App",
            out=self.console,
        )

    def success(self, config: Configuration, result: RunResult | None = None) -> None:
        """Print the thank-you message and how to run the new app."""
        run = f"{config.package_manager} run"
        lines = [
            "",
            f"[green]Thanks for using GRANDstack! We've created your app in "
            f"'{escape(str(config.app_dir))}'[/green]",
            f"You can find documentation at: {DOCS_URL}",
        ]
        if result is not None:
            lines.append(f"[bright_black]Done in {format_duration(result.duration)}[/bright_black]")
        lines.extend([
            "",
            "To start your GRANDstack web application and GraphQL API run:",
            "",
            f"        cd {escape(config.project_path)}",
        ])
        if not config.run_install:
            lines.append(f"        {config.package_manager} install")
        lines.extend([
            f"        {run} start",
            "",
            "Then (optionally) to seed the database with sample data, in the api/ "
            "directory in another terminal run:",
            "",
            f"        {run} seedDb",
            "",
        ])
        self.console.print("\n".join(lines))

    def failure(self, result: RunResult) -> None:
        """Print the captured step failure."""
        error = result.error
        if error is None:
            return
        cause = error.cause
        body = escape(str(cause) or type(cause).__name__)
        self.console.print()
        self.console.print(
            Panel(
                body,
                title=f"[bold red]{escape(error.title)} failed[/bold red]",
                border_style="red",
            )
        )
        if not isinstance(cause, EXPECTED_ERRORS):
            tb = "".join(traceback.format_exception(type(cause), cause, cause.__traceback__))
            self.console.print(f"[dim]{escape(tb)}[/dim]")

    def usage_error(
        self, message: str, *, show_example: bool = False, prog: str = "create-grandstack-app"
    ) -> None:
        """Print a usage error, optionally followed by an example invocation."""
        self.console.print(f"[bold red]Error:[/bold red] {escape(message)}")
        if not show_example:
            return
        self.console.print()
        self.console.print(f"  [cyan]{prog}[/cyan] [green]<project-directory>[/green]")
        self.console.print()
        self.console.print("For example:")
        self.console.print(f"  [cyan]{prog}[/cyan] [green]my-grandstack-app[/green]")

    def stop_spinner(self) -> None:
        if self._status is not None:
            self._status.stop()
            self._status = None
