"""Unit tests for utility functions (create_grandstack_app.utils).

Tests cover:
- run_command (success, failure, timeout, cwd, stderr, no shell)
- dir_is_empty / ensure_dir
- save_json (use tmp_path)
- format_duration
- Rich output helpers (print_summary_table, print_error, print_warning)
"""

from __future__ import annotations

import io
import json
import sys
from pathlib import Path

import pytest
from rich.console import Console

from create_grandstack_app.utils import (
    dir_is_empty,
    ensure_dir,
    format_duration,
    print_error,
    print_summary_table,
    print_warning,
    run_command,
    save_json,
)

PY = sys.executable


# ---------------------------------------------------------------------------
# run_command
# ---------------------------------------------------------------------------


class TestRunCommand:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_successful_command_list(self):
        returncode, stdout, stderr = await run_command([PY, "-c", "print('hello')"])
        assert returncode == 0
        assert "hello" in stdout

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_failed_command(self):
        returncode, stdout, stderr = await run_command(
            [PY, "-c", "import sys; sys.exit(3)"]
        )
        assert returncode == 3

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_command_with_cwd(self, tmp_path: Path):
        returncode, stdout, stderr = await run_command(
            [PY, "-c", "import os; print(os.getcwd())"], cwd=tmp_path
        )
        assert returncode == 0
        assert Path(stdout.strip()).resolve() == tmp_path.resolve()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_command_timeout(self):
        returncode, stdout, stderr = await run_command(
            [PY, "-c", "import time; time.sleep(10)"], timeout=1
        )
        assert returncode == -1
        assert "timed out" in stderr

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_command_returns_stderr(self):
        returncode, stdout, stderr = await run_command(
            [PY, "-c", "import sys; sys.stderr.write('error_msg\\n')"],
            timeout=10,
        )
        assert "error_msg" in stderr

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_arguments_are_not_shell_expanded(self):
        returncode, stdout, stderr = await run_command(
            [PY, "-c", "import sys; print(sys.argv[1])", "$HOME; echo injected"]
        )
        assert returncode == 0
        assert stdout == "$HOME; echo injected"


# ---------------------------------------------------------------------------
# File-system helpers
# ---------------------------------------------------------------------------


class TestDirIsEmpty:
    @pytest.mark.unit
    def test_missing_dir_is_empty(self, tmp_path: Path):
        assert dir_is_empty(tmp_path / "nope") is True

    @pytest.mark.unit
    def test_empty_dir(self, tmp_path: Path):
        assert dir_is_empty(tmp_path) is True

    @pytest.mark.unit
    def test_dir_with_hidden_file_is_not_empty(self, tmp_path: Path):
        (tmp_path / ".keep").write_text("")
        assert dir_is_empty(tmp_path) is False


class TestEnsureDir:
    @pytest.mark.unit
    def test_creates_new_dir(self, tmp_path: Path):
        new_dir = tmp_path / "new" / "nested" / "dir"
        result = ensure_dir(new_dir)
        assert new_dir.is_dir()
        assert result == new_dir.resolve()

    @pytest.mark.unit
    def test_existing_dir_no_error(self, tmp_path: Path):
        existing = tmp_path / "existing"
        existing.mkdir()
        assert ensure_dir(existing) == existing.resolve()


class TestSaveJson:
    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_save_json_dict(self, tmp_path: Path):
        filepath = tmp_path / "output.json"
        await save_json({"key": "value"}, filepath)
        assert json.loads(filepath.read_text()) == {"key": "value"}

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_save_json_creates_parents(self, tmp_path: Path):
        filepath = tmp_path / "deep" / "nested" / "output.json"
        await save_json({"test": True}, filepath)
        assert filepath.exists()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_save_json_is_compact(self, tmp_path: Path):
        filepath = tmp_path / "output.json"
        await save_json({"a": 1, "b": 2}, filepath)
        assert "\n" not in filepath.read_text()


# ---------------------------------------------------------------------------
# format_duration
# ---------------------------------------------------------------------------


class TestFormatDuration:
    @pytest.mark.unit
    def test_seconds_only(self):
        assert format_duration(3.7) == "3.7s"

    @pytest.mark.unit
    def test_minutes_and_seconds(self):
        assert format_duration(65.2) == "1m 5s"

    @pytest.mark.unit
    def test_zero(self):
        assert format_duration(0.0) == "0.0s"

    @pytest.mark.unit
    def test_negative(self):
        assert format_duration(-5.0) == "0.0s"

    @pytest.mark.unit
    def test_exactly_one_minute(self):
        assert format_duration(60.0) == "1m 0s"


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------


class TestOutputHelpers:
    @pytest.mark.unit
    def test_summary_table_to_given_console(self):
        buffer = io.StringIO()
        out = Console(file=buffer, width=100)
        print_summary_table({"Template": "React"}, title="Run", out=out)
        text = buffer.getvalue()
        assert "Template" in text
        assert "React" in text
        assert "Run" in text

    @pytest.mark.unit
    def test_print_helpers_do_not_raise(self, capsys):
        print_error("broken")
        print_warning("careful")
        captured = capsys.readouterr()
        assert "broken" in captured.out
        assert "careful" in captured.out
