"""Git repository initialisation for the generated project."""

from __future__ import annotations

import asyncio
from pathlib import Path


class GitError(Exception):
    """Raised when a git command fails."""

    def __init__(self, message: str, command: str = "", stderr: str = ""):
        self.command = command
        self.stderr = stderr
        super().__init__(message)


async def _run_git(
    *args: str,
    cwd: str | Path | None = None,
    timeout: float = 60.0,
) -> tuple[str, str]:
    """Run a git command asynchronously and return (stdout, stderr).

    Raises GitError if git is missing, times out, or exits non-zero.
    """
    cmd = ["git"] + list(args)
    cmd_str = " ".join(cmd)

    if cwd is not None and not Path(cwd).is_dir():
        raise GitError(f"Directory not found: {cwd}", command=cmd_str)

    try:
        process = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=str(cwd) if cwd else None,
        )
    except FileNotFoundError as exc:
        raise GitError("git executable not found on PATH", command=cmd_str) from exc

    try:
        stdout_bytes, stderr_bytes = await asyncio.wait_for(
            process.communicate(), timeout=timeout
        )
    except asyncio.TimeoutError:
        process.kill()
        await process.wait()
        raise GitError(
            f"Git command timed out after {timeout}s: {cmd_str}",
            command=cmd_str,
        )

    stdout = stdout_bytes.decode("utf-8", errors="replace").strip()
    stderr = stderr_bytes.decode("utf-8", errors="replace").strip()

    if process.returncode != 0:
        raise GitError(
            f"Failed to initialize git (exit {process.returncode}): {cmd_str}\n{stderr}",
            command=cmd_str,
            stderr=stderr,
        )

    return stdout, stderr


async def init_git(app_dir: str | Path) -> None:
    """Run ``git init`` inside *app_dir*."""
    await _run_git("init", cwd=app_dir)
