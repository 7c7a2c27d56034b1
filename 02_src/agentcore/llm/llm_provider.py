"""Model-interaction runtime using the Anthropic Messages API."""

import os
import uuid
from typing import Any, AsyncIterator, Protocol

import anthropic

from ..logging_config import get_logger
from ..models import (
    AssistantContent,
    ContentBlock,
    InitMessage,
    ResultMessage,
    StreamMessage,
    TextBlock,
    ThinkingBlock,
    TokenUsage,
    ToolResultBlock,
    ToolUseBlock,
)
from .tools import ToolSet

logger = get_logger(__name__)

DEFAULT_MODEL = "claude-sonnet-4-5"


class IModelRuntime(Protocol):
    """Turns a prompt into an ordered stream of assistant/tool/result messages."""

    def run(
        self,
        prompt: str,
        *,
        system: str,
        tools: ToolSet,
        max_turns: int,
        model: str | None = None,
    ) -> AsyncIterator[StreamMessage]:
        """Stream messages until the model stops or the turn budget is spent."""
        ...


class AnthropicRuntime:
    """Tool-use loop over the Anthropic Messages API."""

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        model: str | None = None,
        max_tokens: int = 4096,
    ):
        self._api_key = api_key or os.getenv("ANTHROPIC_API_KEY")
        if not self._api_key:
            raise ValueError("ANTHROPIC_API_KEY environment variable not set")

        self._model = model or os.getenv("MODEL") or DEFAULT_MODEL
        self._max_tokens = max_tokens
        client_kwargs: dict[str, Any] = {"api_key": self._api_key}
        if base_url:
            client_kwargs["base_url"] = base_url
        self._client = anthropic.AsyncAnthropic(**client_kwargs)

    async def run(
        self,
        prompt: str,
        *,
        system: str,
        tools: ToolSet,
        max_turns: int,
        model: str | None = None,
    ) -> AsyncIterator[StreamMessage]:
        """Drive the model until it stops asking for tools or *max_turns* is hit."""
        resolved_model = model or self._model
        yield InitMessage(
            session_id=str(uuid.uuid4()),
            model=resolved_model,
            tool_count=len(tools),
        )

        messages: list[dict[str, Any]] = [{"role": "user", "content": prompt}]
        api_tools = tools.to_api()

        for turn in range(1, max_turns + 1):
            kwargs: dict[str, Any] = {
                "model": resolved_model,
                "system": system,
                "messages": messages,
                "max_tokens": self._max_tokens,
            }
            if api_tools:
                kwargs["tools"] = api_tools

            response = await self._client.messages.create(**kwargs)

            blocks = tuple(_convert_block(b) for b in response.content)
            blocks = tuple(b for b in blocks if b is not None)
            yield AssistantContent(blocks=blocks)
            yield ResultMessage(usage=_convert_usage(response.usage))

            tool_uses = [b for b in blocks if isinstance(b, ToolUseBlock)]
            if response.stop_reason != "tool_use" or not tool_uses:
                break

            results = [await self._execute_tool(tools, block) for block in tool_uses]
            yield AssistantContent(blocks=tuple(results))

            messages.append({"role": "assistant", "content": response.content})
            messages.append(
                {
                    "role": "user",
                    "content": [
                        {
                            "type": "tool_result",
                            "tool_use_id": r.tool_use_id,
                            "content": r.content,
                            "is_error": r.is_error,
                        }
                        for r in results
                    ],
                }
            )
        else:
            logger.info("Turn budget of %s exhausted", max_turns)

    async def _execute_tool(self, tools: ToolSet, block: ToolUseBlock) -> ToolResultBlock:
        tool = tools.get(block.name)
        if tool is None:
            return ToolResultBlock(
                tool_use_id=block.id,
                content=f"Error: unknown tool {block.name}",
                is_error=True,
            )
        try:
            output = await tool.handler(block.input)
        except Exception as e:
            logger.warning("Tool %s failed: %s", block.name, e)
            return ToolResultBlock(tool_use_id=block.id, content=f"Error: {e}", is_error=True)
        return ToolResultBlock(tool_use_id=block.id, content=output)


def _convert_block(block: Any) -> ContentBlock | None:
    block_type = getattr(block, "type", None)
    if block_type == "text":
        return TextBlock(text=block.text)
    if block_type == "thinking":
        return ThinkingBlock(thinking=block.thinking)
    if block_type == "tool_use":
        return ToolUseBlock(id=block.id, name=block.name, input=dict(block.input or {}))
    logger.debug("Skipping unsupported content block type %s", block_type)
    return None


def _convert_usage(usage: Any) -> TokenUsage | None:
    if usage is None:
        return None
    return TokenUsage(
        input_tokens=getattr(usage, "input_tokens", None) or 0,
        output_tokens=getattr(usage, "output_tokens", None) or 0,
        cache_creation_tokens=getattr(usage, "cache_creation_input_tokens", None) or 0,
        cache_read_tokens=getattr(usage, "cache_read_input_tokens", None) or 0,
    )
