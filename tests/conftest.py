"""Shared pytest fixtures for the create-grandstack-app test suite.

Provides reusable fixtures for:
- Resolved ``Configuration`` objects rooted in a temp directory
- A starter-release zipball shaped like the GitHub one
- Recording fake collaborators and a scripted prompter
"""

from __future__ import annotations

import shutil
import zipfile
from pathlib import Path
from typing import Any, Callable
from unittest.mock import AsyncMock

import pytest

from create_grandstack_app.config import TEMPLATE_DIRS, Configuration, templates_to_remove
from create_grandstack_app.tasks import Collaborators

STARTER_ROOT = "grand-stack-grand-stack-starter-1a2b3c4/"


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


@pytest.fixture
def make_config(tmp_path: Path) -> Callable[..., Configuration]:
    """Factory for a ``Configuration`` whose app directory lives under tmp_path."""

    def _make(**overrides: Any) -> Configuration:
        template = overrides.pop("template", "React")
        values: dict[str, Any] = {
            "project_path": "myapp",
            "app_dir": tmp_path / "myapp",
            "template": template,
            "rm_templates": templates_to_remove(template),
        }
        values.update(overrides)
        return Configuration(**values)

    return _make


@pytest.fixture
def config(make_config: Callable[..., Configuration]) -> Configuration:
    """Default React configuration (no git, no install)."""
    return make_config()


# ---------------------------------------------------------------------------
# Starter release archive
# ---------------------------------------------------------------------------


def build_starter_zip(path: Path) -> Path:
    """Write a zip laid out like a GitHub zipball of the starter."""
    with zipfile.ZipFile(path, "w") as zf:
        zf.writestr(STARTER_ROOT, "")
        zf.writestr(STARTER_ROOT + "package.json", '{"name": "grand-stack-starter"}')
        zf.writestr(STARTER_ROOT + "README.md", "# GRANDstack Starter\n")
        zf.writestr(STARTER_ROOT + "scripts/config/index.json", "{}")
        zf.writestr(STARTER_ROOT + "api/package.json", '{"name": "api"}')
        zf.writestr(STARTER_ROOT + "api/.env", "NEO4J_URI=bolt://placeholder\n")
        zf.writestr(STARTER_ROOT + "api/src/index.js", "// api\n")
        for directory in TEMPLATE_DIRS.values():
            if directory == "api":
                continue
            zf.writestr(STARTER_ROOT + f"{directory}/package.json", f'{{"name": "{directory}"}}')
            zf.writestr(STARTER_ROOT + f"{directory}/src/App.js", "// app\n")
    return path


@pytest.fixture
def starter_zip(tmp_path: Path) -> Path:
    """Path to a freshly built starter zipball."""
    return build_starter_zip(tmp_path / "starter.zip")


# ---------------------------------------------------------------------------
# Collaborators & prompter
# ---------------------------------------------------------------------------


@pytest.fixture
def fake_collaborators() -> Collaborators:
    """Collaborators whose every member is an ``AsyncMock`` returning ``None``."""
    return Collaborators(
        download_latest=AsyncMock(),
        extract=AsyncMock(),
        remove_templates=AsyncMock(),
        write_dotenv=AsyncMock(),
        write_scripts_config=AsyncMock(),
        init_git=AsyncMock(),
        install=AsyncMock(),
        check_compatibility=AsyncMock(),
    )


@pytest.fixture
def offline_collaborators(starter_zip: Path) -> Collaborators:
    """Real file-system collaborators with the network and subprocesses faked.

    ``download_latest`` copies the local starter zipball into place;
    ``init_git``, ``install`` and ``check_compatibility`` are ``AsyncMock``s.
    """
    from create_grandstack_app.archive import extract_archive
    from create_grandstack_app.files import remove_templates, write_dotenv, write_scripts_config

    async def download_latest(target: Path) -> Path:
        shutil.copyfile(starter_zip, target)
        return Path(target)

    return Collaborators(
        download_latest=AsyncMock(side_effect=download_latest),
        extract=AsyncMock(side_effect=extract_archive),
        remove_templates=AsyncMock(side_effect=remove_templates),
        write_dotenv=AsyncMock(side_effect=write_dotenv),
        write_scripts_config=AsyncMock(side_effect=write_scripts_config),
        init_git=AsyncMock(),
        install=AsyncMock(),
        check_compatibility=AsyncMock(return_value="v18.17.1"),
    )


class ScriptedPrompter:
    """Prompter that answers from a dict and records every question."""

    def __init__(self, answers: dict[str, Any] | None = None) -> None:
        self.answers = answers or {}
        self.asked: list[str] = []

    def _answer(self, message: str, default: Any) -> Any:
        self.asked.append(message)
        for key, value in self.answers.items():
            if key in message:
                return value
        return default

    def choose(self, message: str, choices: list[str], default: str) -> str:
        return self._answer(message, default)

    def confirm(self, message: str, default: bool = False) -> bool:
        return self._answer(message, default)

    def ask(self, message: str, default: str, password: bool = False) -> str:
        return self._answer(message, default)


@pytest.fixture
def prompter() -> ScriptedPrompter:
    """Prompter that accepts every default."""
    return ScriptedPrompter()


@pytest.fixture
def make_prompter() -> Callable[..., ScriptedPrompter]:
    """Factory for a ``ScriptedPrompter`` with the given answers."""
    return ScriptedPrompter
