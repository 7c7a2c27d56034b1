"""Tests for AnthropicRuntime."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, Mock, patch

import pytest

from agentcore.llm import AnthropicRuntime, Tool, ToolSet
from agentcore.models import (
    AssistantContent,
    InitMessage,
    ResultMessage,
    TextBlock,
    ToolResultBlock,
    ToolUseBlock,
)


def api_response(blocks, stop_reason="end_turn", input_tokens=10, output_tokens=5):
    return SimpleNamespace(
        content=blocks,
        stop_reason=stop_reason,
        usage=SimpleNamespace(
            input_tokens=input_tokens,
            output_tokens=output_tokens,
            cache_creation_input_tokens=None,
            cache_read_input_tokens=2,
        ),
    )


def text(value):
    return SimpleNamespace(type="text", text=value)


def tool_use(tool_id, name, tool_input):
    return SimpleNamespace(type="tool_use", id=tool_id, name=name, input=tool_input)


async def echo_handler(tool_input):
    return f"echo {tool_input['value']}"


async def failing_handler(tool_input):
    raise RuntimeError("tool exploded")


def make_runtime(responses):
    mock_client = Mock()
    mock_client.messages.create = AsyncMock(side_effect=responses)
    with patch(
        "agentcore.llm.llm_provider.anthropic.AsyncAnthropic",
        return_value=mock_client,
    ):
        runtime = AnthropicRuntime(api_key="test_key", model="claude-sonnet-4-5")
    return runtime, mock_client


async def collect(runtime, tools=None, max_turns=5):
    return [
        m
        async for m in runtime.run("hi", system="sys", tools=tools or ToolSet(), max_turns=max_turns)
    ]


class TestAnthropicRuntimeInit:
    """Tests for AnthropicRuntime initialization."""

    def test_init_with_api_key(self, monkeypatch):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "test_key")
        with patch("agentcore.llm.llm_provider.anthropic.AsyncAnthropic"):
            assert AnthropicRuntime() is not None

    def test_init_without_api_key(self, monkeypatch):
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
        with patch("agentcore.llm.llm_provider.anthropic.AsyncAnthropic"):
            with pytest.raises(ValueError, match="ANTHROPIC_API_KEY"):
                AnthropicRuntime()

    def test_model_from_env(self, monkeypatch):
        monkeypatch.setenv("MODEL", "claude-haiku-env")
        with patch("agentcore.llm.llm_provider.anthropic.AsyncAnthropic"):
            assert AnthropicRuntime(api_key="k")._model == "claude-haiku-env"


class TestAnthropicRuntimeRun:
    """Tests for the tool-use loop."""

    async def test_single_turn(self):
        runtime, client = make_runtime([api_response([text("hello")])])
        messages = await collect(runtime)

        assert isinstance(messages[0], InitMessage)
        assert messages[0].model == "claude-sonnet-4-5"
        assert messages[1] == AssistantContent(blocks=(TextBlock(text="hello"),))
        assert isinstance(messages[2], ResultMessage)
        assert messages[2].usage.input_tokens == 10
        assert messages[2].usage.cache_creation_tokens == 0
        assert messages[2].usage.cache_read_tokens == 2
        assert len(messages) == 3
        assert "tools" not in client.messages.create.call_args.kwargs

    async def test_tool_round_trip(self):
        runtime, client = make_runtime(
            [
                api_response([tool_use("t1", "echo", {"value": "x"})], stop_reason="tool_use"),
                api_response([text("done")]),
            ]
        )
        tools = ToolSet([Tool(name="echo", description="Echo", handler=echo_handler)])

        messages = await collect(runtime, tools)

        results = messages[3]
        assert results == AssistantContent(
            blocks=(ToolResultBlock(tool_use_id="t1", content="echo x"),)
        )
        second_call = client.messages.create.call_args_list[1].kwargs
        assert second_call["messages"][-1]["content"][0]["tool_use_id"] == "t1"
        assert second_call["tools"][0]["name"] == "echo"
        assert isinstance(messages[1].blocks[0], ToolUseBlock)

    async def test_tool_failure_becomes_error_result(self):
        runtime, _ = make_runtime(
            [
                api_response(
                    [tool_use("t1", "boom", {}), tool_use("t2", "ghost", {})],
                    stop_reason="tool_use",
                ),
                api_response([text("ok")]),
            ]
        )
        tools = ToolSet([Tool(name="boom", description="Fails", handler=failing_handler)])

        messages = await collect(runtime, tools)

        boom, ghost = messages[3].blocks
        assert boom.is_error and "tool exploded" in boom.content
        assert ghost.is_error and "unknown tool" in ghost.content

    async def test_turn_budget(self):
        looping = api_response([tool_use("t", "echo", {"value": 1})], stop_reason="tool_use")
        runtime, client = make_runtime([looping, looping, looping])
        tools = ToolSet([Tool(name="echo", description="Echo", handler=echo_handler)])

        await collect(runtime, tools, max_turns=2)

        assert client.messages.create.await_count == 2

    async def test_api_error_propagates(self):
        runtime, _ = make_runtime(RuntimeError("overloaded"))
        with pytest.raises(RuntimeError, match="overloaded"):
            await collect(runtime)


class TestToolSet:
    """Tests for ToolSet."""

    def test_duplicate_names_rejected(self):
        tool = Tool(name="a", description="", handler=echo_handler)
        with pytest.raises(ValueError):
            ToolSet([tool, tool])

    def test_to_api(self):
        tools = ToolSet([Tool(name="a", description="d", handler=echo_handler)])
        assert tools.to_api() == [
            {"name": "a", "description": "d", "input_schema": {"type": "object", "properties": {}}}
        ]
