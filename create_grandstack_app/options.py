"""Options resolver: command-line flags plus interactive answers.

``parse_arguments`` turns ``argv`` into ``RawOptions``; ``resolve_options``
fills every gap (from the ``Prompter`` or from defaults) and returns the
immutable ``Configuration`` that drives the pipeline.  Nothing here touches
the network or writes to disk.
"""

from __future__ import annotations

import argparse
from collections.abc import Sequence
from pathlib import Path
from typing import Protocol

from pydantic import BaseModel, ValidationError
from rich.prompt import Confirm, Prompt

from create_grandstack_app.config import (
    DEFAULT_NEO4J_PASSWORD,
    DEFAULT_NEO4J_URI,
    DEFAULT_NEO4J_USER,
    DEFAULT_TEMPLATE,
    TEMPLATE_DIRS,
    Configuration,
    templates_to_remove,
)
from create_grandstack_app.utils import console, dir_is_empty

PROG = "create-grandstack-app"


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class UsageError(Exception):
    """Bad or missing arguments, or a failed pre-flight check."""


class ArgumentError(UsageError):
    """An unrecognised flag or malformed command line."""


class MissingProjectError(UsageError):
    """No project directory was given."""


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------


class _ArgumentParser(argparse.ArgumentParser):
    """``ArgumentParser`` that raises instead of exiting on bad input."""

    def error(self, message: str) -> None:  # type: ignore[override]
        raise ArgumentError(message)


class RawOptions(BaseModel):
    """Flags and positionals exactly as given on the command line."""

    project_path: str | None = None
    template: str | None = None
    git_init: bool = False
    skip_prompts: bool = False
    run_install: bool = False
    use_npm: bool = False


def build_arg_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog=PROG,
        allow_abbrev=False,
        description="Create a new GRANDstack application from the latest starter release.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            f"  {PROG} my-grandstack-app\n"
            f"  {PROG} my-grandstack-app React-TS --git --install\n"
            f"  {PROG} my-grandstack-app --yes\n"
        ),
    )
    parser.add_argument("project_path", nargs="?", metavar="project-directory")
    parser.add_argument(
        "template",
        nargs="?",
        help=f"Frontend template: {', '.join(TEMPLATE_DIRS)}",
    )
    parser.add_argument(
        "-g", "--git",
        dest="git_init",
        action="store_true",
        help="Initialize a git repository in the new project",
    )
    parser.add_argument(
        "-y", "--yes",
        dest="skip_prompts",
        action="store_true",
        help="Skip prompts and use defaults",
    )
    parser.add_argument(
        "-i", "--install",
        dest="run_install",
        action="store_true",
        help="Install dependencies for every generated sub-project",
    )
    parser.add_argument(
        "--use-npm",
        dest="use_npm",
        action="store_true",
        help="Use npm even when yarn is available",
    )
    return parser


def parse_arguments(argv: Sequence[str] | None = None) -> RawOptions:
    """Parse *argv* (without the program name).

    Raises:
        ArgumentError: On unknown flags or surplus positionals.
    """
    args = build_arg_parser().parse_intermixed_args(
        list(argv) if argv is not None else None
    )
    return RawOptions(**vars(args))


# ---------------------------------------------------------------------------
# Prompting
# ---------------------------------------------------------------------------


class Prompter(Protocol):
    """Interactive question capability."""

    def choose(self, message: str, choices: list[str], default: str) -> str: ...

    def confirm(self, message: str, default: bool = False) -> bool: ...

    def ask(self, message: str, default: str, password: bool = False) -> str: ...


class RichPrompter:
    """Terminal prompter backed by ``rich.prompt``."""

    def choose(self, message: str, choices: list[str], default: str) -> str:
        return Prompt.ask(message, choices=choices, default=default, console=console)

    def confirm(self, message: str, default: bool = False) -> bool:
        return Confirm.ask(message, default=default, console=console)

    def ask(self, message: str, default: str, password: bool = False) -> str:
        return Prompt.ask(message, default=default, password=password, console=console)


# ---------------------------------------------------------------------------
# Resolution
# ---------------------------------------------------------------------------


def sanitize_project_path(project_path: str | None) -> str:
    """Replace commas with hyphens and trim whitespace."""
    return (project_path or "").replace(",", "-").strip()


def normalize_template(template: str) -> str:
    """Return the canonical spelling of *template* (case-insensitive).

    Raises:
        UsageError: If *template* is not a known template.
    """
    for name in TEMPLATE_DIRS:
        if name.lower() == template.strip().lower():
            return name
    raise UsageError(
        f"Unknown template '{template}'. Choose one of: {', '.join(TEMPLATE_DIRS)}"
    )


def check_app_dir(app_dir: Path) -> bool:
    """Fail if *app_dir* cannot be used; return whether it already exists.

    Raises:
        UsageError: If *app_dir* is a file or a non-empty directory.
    """
    if app_dir.exists() and not app_dir.is_dir():
        raise UsageError(f"'{app_dir}' already exists and is not a directory.")
    if not dir_is_empty(app_dir):
        raise UsageError(f"'{app_dir}' already exists and is not empty.")
    return app_dir.exists()


def resolve_options(
    raw: RawOptions,
    prompter: Prompter | None = None,
    *,
    cwd: Path | None = None,
    yarn_available: bool = True,
) -> Configuration:
    """Merge *raw* flags with prompted answers into a ``Configuration``.

    With ``--yes`` no question is asked and every unset field takes its
    default.  The target directory is checked before any question so the
    operator is not prompted for a run that cannot proceed.

    Args:
        raw: Parsed command-line options.
        prompter: Source of interactive answers; defaults to ``RichPrompter``.
        cwd: Directory the project path is relative to (default: process cwd).
        yarn_available: Whether yarn can be used; when ``False`` npm is forced.

    Raises:
        UsageError: Missing project directory, unknown template, unusable
            target directory, or invalid connection settings.
    """
    project_path = sanitize_project_path(raw.project_path)
    if not project_path:
        raise MissingProjectError("No project directory specified")

    template = normalize_template(raw.template) if raw.template else None

    app_dir = ((cwd or Path.cwd()) / project_path).resolve()
    dir_existed = check_app_dir(app_dir)

    neo4j_uri = DEFAULT_NEO4J_URI
    neo4j_user = DEFAULT_NEO4J_USER
    neo4j_password = DEFAULT_NEO4J_PASSWORD
    git_init = raw.git_init

    if raw.skip_prompts:
        template = template or DEFAULT_TEMPLATE
    else:
        prompter = prompter or RichPrompter()
        if template is None:
            template = normalize_template(
                prompter.choose(
                    "Please choose which project template to use",
                    list(TEMPLATE_DIRS),
                    DEFAULT_TEMPLATE,
                )
            )
        if not git_init:
            git_init = prompter.confirm("Initialize a git repository?", default=False)
        neo4j_uri = prompter.ask("Enter the connection string for Neo4j", DEFAULT_NEO4J_URI)
        neo4j_user = prompter.ask("Enter the Neo4j user", DEFAULT_NEO4J_USER)
        neo4j_password = prompter.ask(
            "Enter the password for this user", DEFAULT_NEO4J_PASSWORD, password=True
        )

    try:
        return Configuration(
            project_path=project_path,
            app_dir=app_dir,
            dir_existed=dir_existed,
            template=template,
            template_dirs=dict(TEMPLATE_DIRS),
            rm_templates=templates_to_remove(template),
            git_init=git_init,
            run_install=raw.run_install,
            use_npm=raw.use_npm or not yarn_available,
            skip_prompts=raw.skip_prompts,
            neo4j_uri=neo4j_uri,
            neo4j_user=neo4j_user,
            neo4j_password=neo4j_password,
        )
    except ValidationError as exc:
        messages = "; ".join(err["msg"] for err in exc.errors())
        raise UsageError(f"Invalid configuration: {messages}") from exc
