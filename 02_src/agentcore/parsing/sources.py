"""Where captured console text comes from."""

import asyncio
from collections import deque
from pathlib import Path
from typing import Protocol

from ..config import DEFAULT_RAW_LOG_TAIL_LINES
from ..logging_config import get_logger

logger = get_logger(__name__)


class LogSourceError(Exception):
    """Captured console text could not be read."""


class ILogSource(Protocol):
    """Provides the most recent lines of captured process output."""

    async def read_lines(self) -> list[str]:
        """Return captured lines, oldest first."""
        ...


class FileLogSource:
    """Tail of a transcript file. A missing file reads as empty."""

    def __init__(self, path: str | Path, tail: int = DEFAULT_RAW_LOG_TAIL_LINES):
        self._path = Path(path)
        self._tail = tail

    async def read_lines(self) -> list[str]:
        return await asyncio.to_thread(self._read)

    def _read(self) -> list[str]:
        if not self._path.exists():
            return []
        try:
            with open(self._path, "r", encoding="utf-8", errors="replace") as f:
                return [line.rstrip("\n") for line in deque(f, maxlen=self._tail)]
        except OSError as e:
            raise LogSourceError(f"Cannot read {self._path}: {e}") from e


class CommandLogSource:
    """Stdout of a shell command, e.g. ``docker logs <container> --tail 1000``."""

    def __init__(self, command: str, timeout: float = 30.0):
        self._command = command
        self._timeout = timeout

    async def read_lines(self) -> list[str]:
        proc = await asyncio.create_subprocess_shell(
            self._command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        try:
            stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=self._timeout)
        except asyncio.TimeoutError as e:
            proc.kill()
            await proc.wait()
            raise LogSourceError(f"Log command timed out after {self._timeout}s") from e

        output = stdout.decode("utf-8", errors="replace")
        if proc.returncode != 0 and not output:
            message = stderr.decode("utf-8", errors="replace").strip()
            raise LogSourceError(message or f"Log command exited with {proc.returncode}")
        if proc.returncode != 0:
            logger.warning("Log command exited with %s; using partial output", proc.returncode)
        return output.splitlines()
