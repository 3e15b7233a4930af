"""Append-only, human-readable operation log.

One timestamped line per significant event. The file is never read back by
hubwatch itself.
"""

from __future__ import annotations

import asyncio
from datetime import datetime
from pathlib import Path

from hubwatch.logging import get_logger

log = get_logger("hubwatch.oplog")

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


class OperationLog:
    """Serialised appender for the operation log file."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._lock = asyncio.Lock()

    @staticmethod
    def format_line(message: str, when: datetime | None = None) -> str:
        stamp = (when or datetime.now()).strftime(TIMESTAMP_FORMAT)
        return f"[{stamp}] {message}\n"

    async def write(self, message: str) -> None:
        """Append one line for ``message``."""
        line = self.format_line(message)
        async with self._lock:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with self._path.open("a", encoding="utf-8") as fh:
                fh.write(line)
        log.debug("oplog_entry", message=message)
