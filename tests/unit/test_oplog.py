"""Tests for hubwatch.oplog — the append-only operation log."""

from __future__ import annotations

import asyncio
import re
from datetime import datetime
from pathlib import Path

import pytest

from hubwatch.oplog import OperationLog

LINE_RE = re.compile(r"^\[\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}\] .+$")


class TestFormatLine:
    def test_timestamp_prefix(self) -> None:
        line = OperationLog.format_line("INFO: hello", datetime(2026, 1, 2, 3, 4, 5))
        assert line == "[2026-01-02 03:04:05] INFO: hello\n"


class TestWrite:
    @pytest.mark.asyncio
    async def test_appends_lines(self, tmp_path: Path) -> None:
        path = tmp_path / "logs" / "check-updates.log"
        oplog = OperationLog(path)

        await oplog.write("first")
        await oplog.write("second")

        lines = path.read_text(encoding="utf-8").splitlines()
        assert [line.split("] ", 1)[1] for line in lines] == ["first", "second"]
        assert all(LINE_RE.match(line) for line in lines)

    @pytest.mark.asyncio
    async def test_preserves_existing_content(self, tmp_path: Path) -> None:
        path = tmp_path / "check-updates.log"
        path.write_text("[2020-01-01 00:00:00] old run\n", encoding="utf-8")

        await OperationLog(path).write("new run")

        lines = path.read_text(encoding="utf-8").splitlines()
        assert lines[0].endswith("old run")
        assert lines[1].endswith("new run")

    @pytest.mark.asyncio
    async def test_concurrent_writes_never_interleave(self, tmp_path: Path) -> None:
        path = tmp_path / "check-updates.log"
        oplog = OperationLog(path)

        await asyncio.gather(*(oplog.write(f"entry {i}") for i in range(50)))

        lines = path.read_text(encoding="utf-8").splitlines()
        assert len(lines) == 50
        assert all(LINE_RE.match(line) for line in lines)
        assert {line.split("] ", 1)[1] for line in lines} == {f"entry {i}" for i in range(50)}
