"""Archive extraction with leading-path stripping.

GitHub zipballs wrap the repository in a single ``<owner>-<repo>-<sha>/``
directory.  ``extract_archive`` drops that wrapper so the starter's files
land directly in the target directory.
"""

from __future__ import annotations

import asyncio
import shutil
import zipfile
from pathlib import Path, PurePosixPath


class ArchiveError(Exception):
    """Raised when an archive cannot be read or contains unsafe entries."""


def _stripped_parts(name: str, strip: int) -> tuple[str, ...]:
    parts = PurePosixPath(name).parts
    return parts[strip:]


def _extract_sync(archive_path: Path, target_dir: Path, strip: int) -> list[Path]:
    target_root = target_dir.resolve()
    written: list[Path] = []

    try:
        zf = zipfile.ZipFile(archive_path)
    except (zipfile.BadZipFile, OSError) as exc:
        raise ArchiveError(f"Cannot open archive {archive_path}: {exc}") from exc

    with zf:
        for info in zf.infolist():
            parts = _stripped_parts(info.filename, strip)
            if not parts:
                continue

            destination = target_root.joinpath(*parts).resolve()
            if not destination.is_relative_to(target_root):
                raise ArchiveError(
                    f"Archive entry escapes target directory: {info.filename}"
                )

            if info.is_dir():
                destination.mkdir(parents=True, exist_ok=True)
                continue

            destination.parent.mkdir(parents=True, exist_ok=True)
            with zf.open(info) as src, destination.open("wb") as dst:
                shutil.copyfileobj(src, dst)

            # Preserve the executable bit for scripts packed on Unix hosts.
            mode = (info.external_attr >> 16) & 0o777
            if mode:
                destination.chmod(mode)
            written.append(destination)

    return written


async def extract_archive(
    archive_path: str | Path, target_dir: str | Path, strip: int = 1
) -> list[Path]:
    """Extract *archive_path* into *target_dir*, dropping *strip* leading components.

    Entries whose path is consumed entirely by stripping are skipped.

    Returns:
        The list of files written.

    Raises:
        ArchiveError: If the archive is unreadable or an entry would be
            written outside *target_dir*.
    """
    return await asyncio.to_thread(
        _extract_sync, Path(archive_path), Path(target_dir), strip
    )
