"""Rebuild a structured timeline from captured console text.

Heuristic and best-effort: used only when the persisted LogEntry stream of
a task is not available (e.g. the agent ran in another process).
"""

import re
from typing import Iterable, NamedTuple

from ..models import LogBlock, LogEntryType
from ..session.transcript import (
    BANNER_SEPARATOR,
    COMPLETION_MARKERS,
    COST_MARKER,
    EXECUTION_BOUNDARY,
    EXECUTION_START_MARKER,
    MESSAGE_MARKER,
    SESSION_INIT_MARKER,
    TOOL_USE_MARKER,
    task_marker,
)

_TIMESTAMP_PREFIX = re.compile(
    r"^(\d{4}-\d{2}-\d{2}[T ]\d{2}:\d{2}:\d{2}(?:\.\d+)?(?:Z|[+-]\d{2}:?\d{2})?)\s?(.*)$"
)

BANNER_MAX_LINES = 20
SESSION_MAX_LINES = 10
MESSAGE_MAX_LINES = 20
TOOL_MAX_LINES = 15
COST_MAX_LINES = 25
COMPLETION_MAX_LINES = 30


class _Line(NamedTuple):
    timestamp: str | None
    content: str


def split_lines(text: str) -> list[str]:
    return text.splitlines()


def _strip_timestamp(raw: str) -> _Line:
    match = _TIMESTAMP_PREFIX.match(raw)
    if match:
        return _Line(match.group(1), match.group(2))
    return _Line(None, raw)


def _is_block_start(content: str) -> bool:
    return (
        MESSAGE_MARKER in content
        or SESSION_INIT_MARKER in content
        or TOOL_USE_MARKER in content
        or COST_MARKER in content
        or any(marker in content for marker in COMPLETION_MARKERS)
        or EXECUTION_BOUNDARY in content
    )


def detect_log_type(content: str) -> LogEntryType:
    """Classify free text by keyword."""
    if SESSION_INIT_MARKER.strip("[]") in content:
        return LogEntryType.SESSION
    if MESSAGE_MARKER in content:
        return LogEntryType.MESSAGE
    if TOOL_USE_MARKER in content or "Tool:" in content:
        return LogEntryType.TOOL
    if COST_MARKER in content:
        return LogEntryType.COST
    if "COMPLETE" in content or "SUMMARY" in content:
        return LogEntryType.COMPLETION
    if "ERROR" in content or "Error" in content or "FAILED" in content:
        return LogEntryType.ERROR
    return LogEntryType.INFO


def _task_window(lines: list[_Line], task_id: str) -> list[_Line]:
    marker = task_marker(task_id)
    found = None
    for index, line in enumerate(lines):
        if line.content.rstrip().endswith(marker):
            found = index
    if found is None:
        return []

    start = max(found - 1, 0)
    end = len(lines)
    for index in range(found + 1, len(lines)):
        if EXECUTION_START_MARKER in lines[index].content:
            end = index
            break
    return lines[start:end]


def parse_log_blocks(raw_lines: Iterable[str], task_id: str | None = None) -> list[LogBlock]:
    """Group raw console lines into typed blocks.

    With *task_id*, only that task's window is parsed: from the line before
    the last ``Task ID: <task_id>`` line up to (not including) the next
    execution start marker. A task that never appears yields ``[]``.

    Pure function of its inputs; a leading ISO timestamp on a line becomes
    the block timestamp.
    """
    lines = [_strip_timestamp(raw) for raw in raw_lines]
    lines = [line for line in lines if line.content.strip()]
    if task_id is not None:
        lines = _task_window(lines, task_id)

    blocks: list[LogBlock] = []

    def emit(group: list[_Line], block_type: LogEntryType) -> None:
        blocks.append(
            LogBlock(
                id=f"log-{len(blocks)}",
                timestamp=group[0].timestamp,
                message="\n".join(line.content for line in group),
                type=block_type,
            )
        )

    i = 0
    n = len(lines)
    while i < n:
        content = lines[i].content
        group = [lines[i]]
        i += 1

        if BANNER_SEPARATOR in content:
            while i < n and len(group) < BANNER_MAX_LINES:
                nxt = lines[i].content
                if _is_block_start(nxt):
                    break
                group.append(lines[i])
                i += 1
                if BANNER_SEPARATOR in nxt:
                    break
            block_type = detect_log_type("\n".join(line.content for line in group))
            emit(group, LogEntryType.SESSION if block_type == LogEntryType.INFO else block_type)
            continue

        if SESSION_INIT_MARKER in content:
            block_type, cap = LogEntryType.SESSION, SESSION_MAX_LINES
        elif MESSAGE_MARKER in content:
            block_type, cap = LogEntryType.MESSAGE, MESSAGE_MAX_LINES
        elif TOOL_USE_MARKER in content:
            block_type, cap = LogEntryType.TOOL, TOOL_MAX_LINES
        elif COST_MARKER in content:
            block_type, cap = LogEntryType.COST, COST_MAX_LINES
        elif any(marker in content for marker in COMPLETION_MARKERS):
            block_type, cap = LogEntryType.COMPLETION, COMPLETION_MAX_LINES
        else:
            emit(group, detect_log_type(content))
            continue

        while i < n and len(group) < cap:
            nxt = lines[i].content
            if _is_block_start(nxt) or BANNER_SEPARATOR in nxt:
                break
            group.append(lines[i])
            i += 1
        emit(group, block_type)

    return blocks
