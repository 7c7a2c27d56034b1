"""Human-readable console transcript of agent executions.

The same marker vocabulary is used by :mod:`agentcore.parsing.log_blocks`
to rebuild a structured timeline from captured console text.
"""

import logging
from typing import Any

from ..logging_config import TRANSCRIPT_LOGGER

EXECUTION_START_MARKER = "===== AGENT EXECUTION START ====="
EXECUTION_BOUNDARY = "===== AGENT EXECUTION"
TASK_MARKER_PREFIX = "Task ID: "
BANNER_SEPARATOR = "=" * 40
SESSION_INIT_MARKER = "[SESSION INITIALIZED]"
MESSAGE_MARKER = "[MESSAGE #"
TOOL_USE_MARKER = "[TOOLUSEBLOCK]"
COST_MARKER = "COST TRACKING"
COMPLETION_MARKERS = ("EXECUTION COMPLETE", "COST SUMMARY")

_RULE = "-" * 70


def task_marker(task_id: str) -> str:
    return f"{TASK_MARKER_PREFIX}{task_id}"


def _preview(text: str, limit: int) -> str:
    flat = text[:limit].replace("\n", " ")
    return flat + ("..." if len(text) > limit else "")


class Transcript:
    """Writes transcript lines through the ``agentcore.transcript`` logger."""

    def __init__(self, logger: logging.Logger | None = None):
        self._logger = logger or logging.getLogger(TRANSCRIPT_LOGGER)

    def write(self, *lines: str) -> None:
        for line in lines:
            for part in str(line).splitlines() or [""]:
                self._logger.info(part)

    # Execution boundaries

    def execution_start(self, agent_id: str, task_id: str, prompt: str) -> None:
        self.write(
            EXECUTION_START_MARKER,
            task_marker(task_id),
            f"Agent: {agent_id}",
            f"Prompt preview: {_preview(prompt, 100)}",
        )

    def execution_end(self, task_id: str, success: bool, error: str | None = None) -> None:
        if success:
            self.write(f"{EXECUTION_BOUNDARY} SUCCESS =====")
        else:
            self.write(f"{EXECUTION_BOUNDARY} FAILED =====", f"Error: {error or 'unknown'}")

    # Session

    def banner(self, title: str, fields: dict[str, Any]) -> None:
        self.write("=" * 80, title.upper())
        self.write(*(f"{key}: {value}" for key, value in fields.items()))
        self.write("=" * 80)

    def session_initialized(self, session_id: str, model: str, tool_count: int) -> None:
        self.write(
            SESSION_INIT_MARKER,
            f"Session ID: {session_id}",
            f"Model: {model or 'N/A'}",
            f"Available Tools: {tool_count}",
            _RULE,
        )

    def message_header(self, number: int, message_type: str, block_count: int | None = None) -> None:
        self.write(f"{MESSAGE_MARKER}{number}]", f"Type: {message_type}")
        if block_count is not None:
            self.write(f"[BLOCKS]: {block_count}")

    def block_header(self, index: int, total: int) -> None:
        self.write(f"--- Block {index}/{total} ---")

    def text_block(self, text: str, preview_chars: int) -> None:
        self.write(
            "  [TEXTBLOCK]",
            f"  Length: {len(text)} characters",
            f"  Preview: {_preview(text, preview_chars)}",
        )

    def thinking_block(self, thinking: str, preview_chars: int) -> None:
        self.write(
            "  [THINKINGBLOCK]",
            f"  Thinking Length: {len(thinking)} characters",
            f"  Preview: {_preview(thinking, preview_chars)}",
        )

    def tool_use(self, name: str, tool_id: str, input_keys: list[str], detail: str | None) -> None:
        self.write(f"  {TOOL_USE_MARKER}", f"  Tool: {name}", f"  ID: {tool_id}")
        if input_keys:
            self.write(f"  Input Keys: {', '.join(input_keys)}")
        if detail:
            self.write(f"  {detail}")

    def milestone(self, milestone: str, done: int, total: int) -> None:
        self.write(f"  MILESTONE {done}/{total}: {milestone}")

    def tool_result(self, tool_use_id: str, is_error: bool, content: str) -> None:
        self.write("  [TOOLRESULTBLOCK]", f"  Tool ID: {tool_use_id}")
        if is_error:
            self.write("  Status: ERROR", f"  Error: {content}")
        else:
            self.write("  Status: SUCCESS")

    def cost(self, step: int, step_usage: dict[str, int], step_cost: float, total_cost: float) -> None:
        self.write(
            f"[{COST_MARKER}] STEP {step}",
            f"  Input Tokens:          {step_usage['input']:>10,}",
            f"  Output Tokens:         {step_usage['output']:>10,}",
        )
        if step_usage["cache_creation"]:
            self.write(f"  Cache Creation:        {step_usage['cache_creation']:>10,}")
        if step_usage["cache_read"]:
            self.write(f"  Cache Read:            {step_usage['cache_read']:>10,}")
        self.write(
            f"  Step Cost:             ${step_cost:>10.4f}",
            f"  Running Total:         ${total_cost:>10.4f}",
        )

    def completion(self, summary: dict[str, Any], tool_calls: dict[str, int], cost: dict[str, Any]) -> None:
        self.write(_RULE, "[EXECUTION COMPLETE]")
        self.write(*(f"{key}: {value}" for key, value in summary.items()))
        if tool_calls:
            self.write("Tool Usage:")
            ranked = sorted(tool_calls.items(), key=lambda item: item[1], reverse=True)
            self.write(*(f"  {name}: {count} calls" for name, count in ranked[:10]))
        if cost["inputTokens"] or cost["outputTokens"]:
            self.write(
                "[COST SUMMARY]",
                f"Input Tokens: {cost['inputTokens']:,}",
                f"Output Tokens: {cost['outputTokens']:,}",
            )
            if cost["cacheCreationTokens"]:
                self.write(f"Cache Creation: {cost['cacheCreationTokens']:,}")
            if cost["cacheReadTokens"]:
                self.write(f"Cache Read: {cost['cacheReadTokens']:,}")
            self.write(f"TOTAL COST: ${cost['costUsd']:.4f} USD")
        self.write(_RULE)
