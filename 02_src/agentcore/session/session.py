"""ExecutionSession: turns a runtime message stream into a timeline and a result."""

import json
import time
import uuid
from collections import Counter
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Sequence

from ..cost import CostAccumulator, pricing_for_model
from ..logging_config import get_logger
from ..models import (
    AssistantContent,
    ExecutionMetadata,
    ExecutionResult,
    InitMessage,
    LogEntry,
    LogEntryType,
    LogSink,
    ResultMessage,
    StreamMessage,
    TextBlock,
    ThinkingBlock,
    ToolResultBlock,
    ToolUseBlock,
)
from .extraction import (
    ExtractionError,
    MilestoneTracker,
    PatternExtractor,
    extract_json_fragments,
)
from .transcript import Transcript

logger = get_logger(__name__)

TEXT_PREVIEW_CHARS = 200
THINKING_PREVIEW_CHARS = 150
TOOL_INPUT_CHARS = 500
ERROR_CONTENT_CHARS = 200


class ExecutionSession:
    """Consumes one runtime stream; owns its cost and tool-call tallies.

    Messages are processed strictly one at a time. Nothing raised by the
    stream escapes :meth:`run`: a failing stream ends the session with
    ``success=False`` and the error recorded.
    """

    def __init__(
        self,
        task_id: str,
        *,
        agent_name: str = "agent",
        model: str | None = None,
        extractors: Sequence[PatternExtractor] = (),
        collect_json: bool = False,
        milestones: MilestoneTracker | None = None,
        sink: LogSink | None = None,
        transcript: Transcript | None = None,
    ):
        self._task_id = task_id
        self._agent_name = agent_name
        self._model = model
        self._extractors = tuple(extractors)
        self._collect_json = collect_json
        self._milestones = milestones or MilestoneTracker()
        self._sink = sink
        self._transcript = transcript or Transcript()

        self._cost = CostAccumulator(pricing_for_model(model))
        self._tool_calls: Counter[str] = Counter()
        self._logs: list[LogEntry] = []
        self._response_parts: list[str] = []
        self._data: dict[str, Any] = {}
        self._errors: list[str] = []
        self._session_id: str | None = None
        self._message_count = 0

    @property
    def cost(self) -> CostAccumulator:
        return self._cost

    @property
    def logs(self) -> list[LogEntry]:
        return list(self._logs)

    async def run(self, stream: AsyncIterator[StreamMessage]) -> ExecutionResult:
        """Consume *stream* to the end and build the result."""
        started = time.monotonic()
        self._transcript.banner(
            f"{self._agent_name} - session start",
            {
                "Task": self._task_id,
                "Model": self._model or "default",
                "Started": datetime.now(timezone.utc).isoformat(),
            },
        )

        failure: str | None = None
        try:
            async for message in stream:
                self._message_count += 1
                await self._handle(message)
        except Exception as e:
            failure = str(e) or e.__class__.__name__
            logger.error("Stream failed for task %s: %s", self._task_id, failure, exc_info=True)
            self._errors.append(failure)
            await self._emit(LogEntryType.ERROR, "Query execution failed", {"error": failure})

        duration_ms = int((time.monotonic() - started) * 1000)
        await self._complete(duration_ms)

        self._data.update(
            {
                "sessionId": self._session_id,
                "errors": list(self._errors),
                "toolCalls": dict(self._tool_calls),
                "costTracking": self._cost.snapshot(),
            }
        )
        if self._milestones.enabled:
            self._data["milestones"] = self._milestones.as_dict()
            self._data["milestonesCompleted"] = self._milestones.done
            self._data["milestonesTotal"] = self._milestones.total

        return ExecutionResult(
            success=failure is None,
            response="".join(self._response_parts),
            data=self._data,
            error=failure,
            logs=tuple(self._logs),
            metadata=ExecutionMetadata(
                duration_ms=duration_ms,
                tokens_used=self._cost.tokens_used,
                cost_usd=self._cost.total_cost_usd,
                tool_calls=dict(self._tool_calls),
            ),
        )

    # Dispatch

    async def _handle(self, message: StreamMessage) -> None:
        if isinstance(message, InitMessage):
            await self._on_init(message)
        elif isinstance(message, ResultMessage):
            self._transcript.message_header(self._message_count, "result")
            if message.usage is not None:
                await self._on_usage(message)
        elif isinstance(message, AssistantContent):
            await self._on_content(message)
        else:
            logger.warning("Ignoring unknown stream message %r", type(message).__name__)

    async def _on_init(self, message: InitMessage) -> None:
        self._session_id = message.session_id
        if message.model and self._model is None:
            self._model = message.model
            self._cost.pricing = pricing_for_model(message.model)
        self._transcript.session_initialized(message.session_id, message.model, message.tool_count)
        await self._emit(
            LogEntryType.SESSION,
            "Session initialized",
            {
                "sessionId": message.session_id,
                "model": message.model,
                "toolCount": message.tool_count,
            },
        )

    async def _on_usage(self, message: ResultMessage) -> None:
        usage = message.usage
        step_cost = self._cost.add(usage)
        step = {
            "input": max(usage.input_tokens, 0),
            "output": max(usage.output_tokens, 0),
            "cache_creation": max(usage.cache_creation_tokens, 0),
            "cache_read": max(usage.cache_read_tokens, 0),
        }
        self._transcript.cost(self._cost.steps, step, step_cost, self._cost.total_cost_usd)
        await self._emit(
            LogEntryType.COST,
            f"Cost update: ${step_cost:.4f} (total ${self._cost.total_cost_usd:.4f})",
            {
                "step": self._cost.steps,
                "inputTokens": step["input"],
                "outputTokens": step["output"],
                "cacheCreationTokens": step["cache_creation"],
                "cacheReadTokens": step["cache_read"],
                "stepCost": step_cost,
                "runningTotal": self._cost.total_cost_usd,
                "total": self._cost.snapshot(),
            },
        )

    async def _on_content(self, message: AssistantContent) -> None:
        total = len(message.blocks)
        self._transcript.message_header(self._message_count, "assistant", total)
        for index, block in enumerate(message.blocks, start=1):
            self._transcript.block_header(index, total)
            if isinstance(block, TextBlock):
                await self._on_text(block)
            elif isinstance(block, ThinkingBlock):
                await self._on_thinking(block)
            elif isinstance(block, ToolUseBlock):
                await self._on_tool_use(block)
            elif isinstance(block, ToolResultBlock):
                await self._on_tool_result(block)
            else:
                logger.warning("Ignoring unknown content block %r", type(block).__name__)

    # Content blocks

    async def _on_text(self, block: TextBlock) -> None:
        text = block.text
        self._response_parts.append(text)
        self._transcript.text_block(text, TEXT_PREVIEW_CHARS)
        await self._emit(
            LogEntryType.MESSAGE,
            text[:TEXT_PREVIEW_CHARS],
            {
                "preview": text[:TEXT_PREVIEW_CHARS],
                "length": len(text),
                "reasoning": False,
            },
        )
        self._apply_extractors(text)

        if self._collect_json:
            try:
                fragments = extract_json_fragments(text)
            except ExtractionError as e:
                logger.warning("Could not parse JSON in task %s: %s", self._task_id, e)
                self._transcript.write(f"  [WARNING] {e}")
            else:
                if fragments:
                    self._data.setdefault("jsonFragments", []).extend(fragments)

    async def _on_thinking(self, block: ThinkingBlock) -> None:
        thinking = block.thinking
        self._transcript.thinking_block(thinking, THINKING_PREVIEW_CHARS)
        await self._emit(
            LogEntryType.MESSAGE,
            thinking[:THINKING_PREVIEW_CHARS],
            {
                "preview": thinking[:THINKING_PREVIEW_CHARS],
                "length": len(thinking),
                "reasoning": True,
            },
        )

    async def _on_tool_use(self, block: ToolUseBlock) -> None:
        self._tool_calls[block.name] += 1
        rendered = _render_input(block.input)
        truncated = rendered[:TOOL_INPUT_CHARS]

        detail = None
        command = block.input.get("command")
        if isinstance(command, str):
            detail = f"Command: {command[:80]}"
        self._transcript.tool_use(block.name, block.id, list(block.input), detail)

        payload: dict[str, Any] = {
            "toolName": block.name,
            "toolId": block.id,
            "inputKeys": list(block.input),
            "input": truncated,
            "inputTruncated": len(rendered) > TOOL_INPUT_CHARS,
            "callCount": self._tool_calls[block.name],
        }
        milestone = self._milestones.observe(block)
        if milestone:
            payload["milestone"] = milestone
            self._transcript.milestone(milestone, self._milestones.done, self._milestones.total)

        await self._emit(LogEntryType.TOOL, f"Tool call: {block.name}", payload)

    async def _on_tool_result(self, block: ToolResultBlock) -> None:
        content = _render_content(block.content)
        if block.is_error:
            error = content[:ERROR_CONTENT_CHARS]
            self._errors.append(error)
            self._transcript.tool_result(block.tool_use_id, True, error)
            await self._emit(
                LogEntryType.ERROR,
                f"Tool error: {error}",
                {"toolUseId": block.tool_use_id},
            )
            return

        self._transcript.tool_result(block.tool_use_id, False, content)
        self._apply_extractors(content)

    def _apply_extractors(self, text: str) -> None:
        for extractor in self._extractors:
            value = extractor.find(text)
            if value:
                self._data[extractor.key] = value

    # Completion

    async def _complete(self, duration_ms: int) -> None:
        summary: dict[str, Any] = {
            "Session ID": self._session_id,
            "Total Messages": self._message_count,
            "Duration": f"{duration_ms / 1000:.2f} seconds",
            "Errors": len(self._errors),
        }
        if self._milestones.enabled:
            summary["Milestones"] = f"{self._milestones.done}/{self._milestones.total}"
        self._transcript.completion(summary, dict(self._tool_calls), self._cost.snapshot())

        await self._emit(
            LogEntryType.COMPLETION,
            "Execution finished",
            {
                "sessionId": self._session_id,
                "totalMessages": self._message_count,
                "duration": duration_ms,
                "errors": len(self._errors),
                "toolUsage": dict(self._tool_calls),
                "totalCost": self._cost.total_cost_usd,
            },
        )

    async def _emit(self, entry_type: LogEntryType, message: str, data: dict[str, Any] | None = None) -> None:
        entry = LogEntry(
            id=str(uuid.uuid4()),
            timestamp=datetime.now(timezone.utc),
            type=entry_type,
            message=message,
            data=data,
        )
        self._logs.append(entry)
        if self._sink is None:
            return
        try:
            await self._sink(entry)
        except Exception as e:
            logger.error("Failed to persist log entry for task %s: %s", self._task_id, e)


def _render_input(tool_input: dict[str, Any]) -> str:
    try:
        return json.dumps(tool_input, default=str)
    except (TypeError, ValueError):
        return str(tool_input)


def _render_content(content: Any) -> str:
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = []
        for item in content:
            if isinstance(item, dict) and "text" in item:
                parts.append(str(item["text"]))
            else:
                parts.append(str(item))
        return "\n".join(parts)
    return str(content)
