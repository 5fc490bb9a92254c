"""``create-grandstack-app`` command-line entry point.

Usage::

    create-grandstack-app my-grandstack-app
    create-grandstack-app my-grandstack-app React-TS --git --install
    python -m create_grandstack_app my-grandstack-app --yes

Exit codes: 0 on success, 1 on a usage error or a failed step, 130 when
interrupted.
"""

from __future__ import annotations

import asyncio
from collections.abc import Sequence

from rich.markup import escape

from create_grandstack_app.config import Settings
from create_grandstack_app.installer import has_yarn
from create_grandstack_app.options import (
    ArgumentError,
    MissingProjectError,
    Prompter,
    UsageError,
    parse_arguments,
    resolve_options,
)
from create_grandstack_app.reporter import Reporter
from create_grandstack_app.tasks import Collaborators, create_app
from create_grandstack_app.utils import print_error, print_warning

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130


def main(
    argv: Sequence[str] | None = None,
    *,
    prompter: Prompter | None = None,
    collaborators: Collaborators | None = None,
    reporter: Reporter | None = None,
) -> int:
    """Run the scaffolder and return the process exit code."""
    reporter = reporter or Reporter()

    try:
        settings = Settings.from_env()
        collaborators = collaborators or Collaborators.default(settings)
    except ValueError as exc:
        print_error(f"Invalid environment configuration: {escape(str(exc))}")
        return EXIT_FAILURE

    try:
        raw = parse_arguments(argv)
        config = resolve_options(raw, prompter, yarn_available=has_yarn())
    except UsageError as exc:
        reporter.usage_error(
            str(exc), show_example=isinstance(exc, (ArgumentError, MissingProjectError))
        )
        return EXIT_FAILURE
    except (KeyboardInterrupt, EOFError):
        print_warning("\nAborted.")
        return EXIT_INTERRUPTED

    reporter.start(config)
    try:
        result = asyncio.run(
            create_app(config, collaborators, settings=settings, observer=reporter)
        )
    except KeyboardInterrupt:
        reporter.stop_spinner()
        print_warning("\nAborted.")
        return EXIT_INTERRUPTED

    if result.success:
        reporter.success(config, result)
        return EXIT_OK

    reporter.failure(result)
    return EXIT_FAILURE


if __name__ == "__main__":
    raise SystemExit(main())
