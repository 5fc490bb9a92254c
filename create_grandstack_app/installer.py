"""Dependency installation for the generated sub-projects.

Runs ``yarn install`` or ``npm install`` in a directory and checks that the
local Node.js toolchain is new enough for the starter.
"""

from __future__ import annotations

import re
import shutil
from pathlib import Path

from create_grandstack_app.utils import run_command


class InstallError(Exception):
    """Raised when a package-manager invocation fails."""


class CompatibilityError(Exception):
    """Raised when an installed toolchain does not meet a minimum version."""


def has_yarn() -> bool:
    """Return ``True`` when a ``yarnpkg``/``yarn`` executable is on ``PATH``."""
    return shutil.which("yarnpkg") is not None or shutil.which("yarn") is not None


def install_command(use_npm: bool) -> list[str]:
    """Return the argv used to install dependencies."""
    if use_npm:
        return ["npm", "install"]
    return ["yarn", "install"]


async def project_install(cwd: str | Path, use_npm: bool = False, timeout: int = 900) -> None:
    """Install the dependencies of the project in *cwd*.

    Raises:
        InstallError: If the directory is missing, the package manager is not
            installed, or it exits non-zero.
    """
    directory = Path(cwd)
    if not directory.is_dir():
        raise InstallError(f"Cannot install dependencies, directory not found: {directory}")

    cmd = install_command(use_npm)
    executable = shutil.which(cmd[0])
    if executable is None:
        raise InstallError(f"{cmd[0]} executable not found on PATH")

    returncode, stdout, stderr = await run_command(
        [executable, *cmd[1:]], cwd=directory, timeout=timeout
    )
    if returncode != 0:
        detail = stderr or stdout
        raise InstallError(
            f"'{' '.join(cmd)}' failed in {directory} (exit {returncode})\n{detail[-2000:]}"
        )


_VERSION_RE = re.compile(r"v?(\d+)(?:\.(\d+))?(?:\.(\d+))?")


def parse_version(text: str) -> tuple[int, int, int]:
    """Parse ``v18.17.1``-style output into a ``(major, minor, patch)`` tuple.

    Raises:
        ValueError: If *text* contains no version number.
    """
    match = _VERSION_RE.search(text.strip())
    if not match:
        raise ValueError(f"Unrecognised version string: {text!r}")
    return tuple(int(part or 0) for part in match.groups())  # type: ignore[return-value]


async def check_node_version(min_major: int = 8) -> str:
    """Verify that ``node`` is installed and at least *min_major*.

    Returns:
        The detected version string.

    Raises:
        CompatibilityError: If node is missing or too old.
    """
    if shutil.which("node") is None:
        raise CompatibilityError(f"node >={min_major} required, but node was not found")

    returncode, stdout, stderr = await run_command(["node", "--version"], timeout=30)
    if returncode != 0:
        raise CompatibilityError(f"Could not determine node version: {stderr or stdout}")

    try:
        major, _, _ = parse_version(stdout)
    except ValueError as exc:
        raise CompatibilityError(str(exc)) from exc

    if major < min_major:
        raise CompatibilityError(f"node >={min_major} required, but found {stdout.strip()}")
    return stdout.strip()
