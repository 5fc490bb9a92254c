"""Unit tests for zip extraction (create_grandstack_app.archive)."""

from __future__ import annotations

import stat
import zipfile
from pathlib import Path

import pytest

from create_grandstack_app.archive import ArchiveError, extract_archive

pytestmark = pytest.mark.unit


class TestExtractArchive:
    @pytest.mark.asyncio
    async def test_strips_leading_component(self, starter_zip: Path, tmp_path: Path):
        target = tmp_path / "app"
        written = await extract_archive(starter_zip, target, strip=1)

        assert (target / "package.json").is_file()
        assert (target / "api" / "src" / "index.js").is_file()
        assert (target / "web-react" / "package.json").is_file()
        assert not any(p.name.startswith("grand-stack") for p in target.iterdir())
        assert target.resolve() / "package.json" in written

    @pytest.mark.asyncio
    async def test_no_strip(self, starter_zip: Path, tmp_path: Path):
        target = tmp_path / "app"
        await extract_archive(starter_zip, target, strip=0)
        (root,) = list(target.iterdir())
        assert (root / "package.json").is_file()

    @pytest.mark.asyncio
    async def test_creates_target(self, starter_zip: Path, tmp_path: Path):
        target = tmp_path / "does" / "not" / "exist"
        await extract_archive(starter_zip, target)
        assert (target / "README.md").is_file()

    @pytest.mark.asyncio
    async def test_preserves_executable_bit(self, tmp_path: Path):
        archive = tmp_path / "exec.zip"
        with zipfile.ZipFile(archive, "w") as zf:
            info = zipfile.ZipInfo("root/bin/run.sh")
            info.external_attr = 0o755 << 16
            zf.writestr(info, "#!/bin/sh\necho hi\n")

        await extract_archive(archive, tmp_path / "out")

        mode = (tmp_path / "out" / "bin" / "run.sh").stat().st_mode
        assert mode & stat.S_IXUSR

    @pytest.mark.asyncio
    async def test_rejects_path_traversal(self, tmp_path: Path):
        archive = tmp_path / "evil.zip"
        with zipfile.ZipFile(archive, "w") as zf:
            zf.writestr("root/../../escaped.txt", "gotcha")

        with pytest.raises(ArchiveError, match="escapes target directory"):
            await extract_archive(archive, tmp_path / "out")
        assert not (tmp_path / "escaped.txt").exists()

    @pytest.mark.asyncio
    async def test_bad_zip(self, tmp_path: Path):
        archive = tmp_path / "broken.zip"
        archive.write_bytes(b"this is not a zip file")
        with pytest.raises(ArchiveError, match="Cannot open archive"):
            await extract_archive(archive, tmp_path / "out")

    @pytest.mark.asyncio
    async def test_missing_archive(self, tmp_path: Path):
        with pytest.raises(ArchiveError):
            await extract_archive(tmp_path / "missing.zip", tmp_path / "out")
