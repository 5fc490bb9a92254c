"""Step registry for creating a GRANDstack app.

``build_steps`` declares, in order, every step of a scaffolding run and binds
it to the resolved ``Configuration`` and a set of ``Collaborators``.
``create_app`` runs those steps through the generic ``Pipeline``; an optional
observer (the reporter) sees every step transition.

Steps (in order):

1. Create or reuse the target directory.
2. Download the latest release archive to a temporary file.
3. Extract it into the target directory, stripping one path component.
4. Remove the unselected template directories.
5. Write ``api/.env``.
6. Write ``scripts/config/index.json``.
7. ``git init`` (only with ``--git``).
8. Install packages (only with ``--install``): compatibility check, root,
   ``api`` and the chosen frontend.
"""

from __future__ import annotations

import functools
import tempfile
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from create_grandstack_app.archive import extract_archive
from create_grandstack_app.config import Configuration, Settings
from create_grandstack_app.files import remove_templates, write_dotenv, write_scripts_config
from create_grandstack_app.git import init_git
from create_grandstack_app.installer import check_node_version, project_install
from create_grandstack_app.pipeline import Pipeline, PipelineObserver, RunResult, Step
from create_grandstack_app.release import ReleaseClient
from create_grandstack_app.utils import ensure_dir

INSTALL_HINT = "Pass --install to automatically install dependencies"
GIT_HINT = "Pass --git to initialize a git repository"
API_ONLY_HINT = "The API-only template has no frontend"


# ---------------------------------------------------------------------------
# Collaborators
# ---------------------------------------------------------------------------


@dataclass
class Collaborators:
    """External capabilities the steps delegate to.

    Every member is a coroutine function, so tests can substitute fakes
    without touching the network, git or a package manager.
    """

    download_latest: Callable[[Path], Awaitable[Any]]
    extract: Callable[[Path, Path, int], Awaitable[Any]]
    remove_templates: Callable[[Path, list[str]], Awaitable[Any]]
    write_dotenv: Callable[[Configuration], Awaitable[Any]]
    write_scripts_config: Callable[[Configuration], Awaitable[Any]]
    init_git: Callable[[Path], Awaitable[Any]]
    install: Callable[[Path, bool], Awaitable[Any]]
    check_compatibility: Callable[[], Awaitable[Any]]

    @classmethod
    def default(cls, settings: Settings | None = None) -> "Collaborators":
        """Wire the real implementations using *settings*."""
        settings = settings or Settings()
        client = ReleaseClient(
            release_url=settings.release_url,
            timeout=settings.http_timeout,
            token=settings.github_token,
        )
        return cls(
            download_latest=client.download_latest,
            extract=extract_archive,
            remove_templates=remove_templates,
            write_dotenv=write_dotenv,
            write_scripts_config=write_scripts_config,
            init_git=init_git,
            install=functools.partial(project_install, timeout=settings.install_timeout),
            check_compatibility=functools.partial(
                check_node_version, settings.node_min_major
            ),
        )


# ---------------------------------------------------------------------------
# Step declarations
# ---------------------------------------------------------------------------


def temp_archive_path() -> Path:
    """Return an unused path in the temp directory for the release archive."""
    return Path(tempfile.gettempdir()) / f"grandstack-{uuid.uuid4().hex}.zip"


def build_steps(
    config: Configuration,
    collaborators: Collaborators,
    *,
    download_path: Path | None = None,
) -> list[Step]:
    """Return the ordered steps for *config*."""
    archive = download_path or temp_archive_path()
    app_dir = config.app_dir

    async def create_directory() -> None:
        ensure_dir(app_dir)

    async def download() -> None:
        await collaborators.download_latest(archive)

    async def extract() -> None:
        try:
            await collaborators.extract(archive, app_dir, 1)
        finally:
            archive.unlink(missing_ok=True)

    async def prune_templates() -> None:
        await collaborators.remove_templates(app_dir, list(config.rm_templates))

    async def write_env() -> None:
        await collaborators.write_dotenv(config)

    async def write_scripts() -> None:
        await collaborators.write_scripts_config(config)

    async def git_init() -> None:
        await collaborators.init_git(app_dir)

    def installer(cwd: Path) -> Callable[[], Awaitable[None]]:
        async def install() -> None:
            await collaborators.install(cwd, config.use_npm)

        return install

    frontend_title = (
        "Installing frontend dependencies"
        if config.is_api_only
        else f"Installing {config.template_dir} dependencies"
    )

    return [
        Step(
            f"{'Using' if config.dir_existed else 'Creating'} directory '{app_dir}'",
            action=create_directory,
        ),
        Step("Downloading latest release", action=download),
        Step("Extracting latest release", action=extract),
        Step(
            f"Removing unused templates: {', '.join(config.rm_templates)}",
            action=prune_templates,
            skip=lambda c: not c.rm_templates,
        ),
        Step("Creating local env file with configuration options", action=write_env),
        Step("Creating scripts configuration", action=write_scripts),
        Step(
            "Initialize git",
            action=git_init,
            skip=lambda c: None if c.git_init else GIT_HINT,
        ),
        Step(
            "Installing Packages",
            skip=lambda c: None if c.run_install else INSTALL_HINT,
            children=[
                Step("Checking compatibility", action=collaborators.check_compatibility),
                Step("Installing GRANDstack CLI and dependencies", action=installer(app_dir)),
                Step("Installing api dependencies", action=installer(config.api_path)),
                Step(
                    frontend_title,
                    action=installer(app_dir / config.template_dir),
                    skip=lambda c: API_ONLY_HINT if c.is_api_only else None,
                ),
            ],
        ),
    ]


# ---------------------------------------------------------------------------
# Entry point used by the CLI
# ---------------------------------------------------------------------------


async def create_app(
    config: Configuration,
    collaborators: Collaborators | None = None,
    *,
    settings: Settings | None = None,
    observer: PipelineObserver | None = None,
) -> RunResult:
    """Build and run the pipeline for *config*.

    Failures are returned in the ``RunResult``; the caller decides what they
    mean for the process exit code.
    """
    collaborators = collaborators or Collaborators.default(settings)
    pipeline = Pipeline(build_steps(config, collaborators), config, observer=observer)

    return await pipeline.run()
