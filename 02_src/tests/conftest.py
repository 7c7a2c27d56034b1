"""Pytest configuration and fixtures."""

import json
import sys
from pathlib import Path

import pytest
import pytest_asyncio

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from agentcore.models import (  # noqa: E402
    AssistantContent,
    InitMessage,
    ResultMessage,
    TextBlock,
    TokenUsage,
)


class ScriptedRuntime:
    """Model runtime that replays a fixed message list, optionally failing after it."""

    def __init__(self, messages=(), error: Exception | None = None):
        self.messages = list(messages)
        self.error = error
        self.calls: list[dict] = []

    async def run(self, prompt, *, system, tools, max_turns, model=None):
        self.calls.append(
            {
                "prompt": prompt,
                "system": system,
                "tools": tools,
                "max_turns": max_turns,
                "model": model,
            }
        )
        for message in self.messages:
            yield message
        if self.error is not None:
            raise self.error


class StaticLogSource:
    """Raw log source returning fixed lines."""

    def __init__(self, lines=()):
        self.lines = list(lines)

    async def read_lines(self) -> list[str]:
        return list(self.lines)


def scenario_messages():
    """init -> text 'hello' -> result(100 in / 50 out)."""
    return [
        InitMessage(session_id="s1", model="m", tool_count=5),
        AssistantContent(blocks=(TextBlock(text="hello"),)),
        ResultMessage(usage=TokenUsage(input_tokens=100, output_tokens=50)),
    ]


PROMPT_AGENT_CODE = """
from agentcore.registry import PromptAgent


class Agent(PromptAgent):
    system_prompt = "test agent"
"""


def make_config(agent_id: str, **overrides) -> dict:
    config = {
        "schemaVersion": 1,
        "id": agent_id,
        "name": agent_id.replace("-", " ").title(),
        "version": "1.0.0",
        "description": f"{agent_id} for tests",
        "capabilities": ["task-execution"],
        "tags": ["test"],
        "maxTurns": 3,
    }
    config.update(overrides)
    return config


def write_agent(
    root: Path,
    dir_name: str,
    config: dict | None = None,
    code: str | None = PROMPT_AGENT_CODE,
) -> Path:
    """Create an agent plugin directory; None skips the file."""
    agent_dir = root / dir_name
    agent_dir.mkdir(parents=True, exist_ok=True)
    if config is not None:
        (agent_dir / "config.json").write_text(json.dumps(config), encoding="utf-8")
    if code is not None:
        (agent_dir / "agent.py").write_text(code, encoding="utf-8")
    return agent_dir


@pytest_asyncio.fixture
async def storage():
    """Create in-memory storage for testing."""
    from agentcore.storage import Storage

    st = Storage(":memory:")
    await st.init()
    yield st
    await st.close()


@pytest.fixture
def tracker(storage):
    """Create TaskTracker with storage."""
    from agentcore.tracker import TaskTracker

    return TaskTracker(storage)


@pytest.fixture
def runtime():
    """Scripted runtime replaying the basic scenario."""
    return ScriptedRuntime(scenario_messages())


@pytest.fixture
def agents_dir(tmp_path):
    """Plugin directory with one valid test agent."""
    root = tmp_path / "agents"
    write_agent(root, "test-agent", make_config("test-agent"))
    return root


@pytest_asyncio.fixture
async def application(agents_dir, runtime):
    """Started Application over in-memory storage and a scripted runtime."""
    from agentcore.app import Application

    app = Application(
        db_path=":memory:",
        agents_dir=str(agents_dir),
        api_key="test-key",
        runtime_factory=lambda context: runtime,
        log_source=StaticLogSource(),
        poll_interval=0.01,
    )
    await app.start()
    yield app
    await app.stop()
