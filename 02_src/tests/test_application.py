"""Tests for Application."""

import pytest

from conftest import ScriptedRuntime, StaticLogSource, make_config, scenario_messages, write_agent

from agentcore.app import (
    AgentNotFoundError,
    Application,
    MissingCredentialError,
    TaskAlreadyRunningError,
)
from agentcore.models import AgentStatus, InitMessage, LogEntryType


class TestApplicationStart:
    """Tests for Application.start()."""

    async def test_start_initializes_components(self, application):
        assert application._storage is not None
        assert application._registry is not None
        assert application._tracker is not None
        assert application._streamer is not None
        assert application._log_source is not None
        assert application.registry.has_agent("test-agent")

    async def test_components_share_storage(self, application):
        assert application._tracker._storage is application._storage
        assert application._streamer._storage is application._storage

    def test_properties_before_start_raise(self):
        app = Application(db_path=":memory:")
        with pytest.raises(RuntimeError, match="not started"):
            app.storage
        with pytest.raises(RuntimeError, match="not started"):
            app.registry

    async def test_log_source_from_env(self, monkeypatch, agents_dir):
        from agentcore.parsing import CommandLogSource

        monkeypatch.setenv("LOG_SOURCE_COMMAND", "echo hi")
        app = Application(db_path=":memory:", agents_dir=str(agents_dir), api_key="k")
        await app.start()
        try:
            assert isinstance(app.log_source, CommandLogSource)
        finally:
            await app.stop()


class TestRunTask:
    """Tests for Application.run_task()."""

    async def test_successful_run_is_persisted(self, application):
        task_id, result = await application.run_task("do it", agent_id="test-agent", task_id="t1")

        assert task_id == "t1"
        assert result.success is True
        task = await application.storage.get_task("t1")
        assert task.agent_status == AgentStatus.SUCCESS
        assert task.agent_response == "hello"
        assert task.cost_usd == pytest.approx(0.00105)

    async def test_logs_persisted_in_emission_order(self, application):
        _, result = await application.run_task("do it", agent_id="test-agent", task_id="t1")

        stored = await application.storage.get_task_logs("t1")
        assert [e.id for e in stored] == [e.id for e in result.logs]

    async def test_generated_task_id(self, application):
        task_id, _ = await application.run_task("do it", agent_id="test-agent")
        assert task_id
        assert await application.storage.get_task(task_id) is not None

    async def test_failed_run_marks_error(self, agents_dir):
        runtime = ScriptedRuntime([InitMessage(session_id="s", model="m")], error=RuntimeError("boom"))
        app = Application(
            db_path=":memory:",
            agents_dir=str(agents_dir),
            api_key="k",
            runtime_factory=lambda ctx: runtime,
            log_source=StaticLogSource(),
        )
        await app.start()
        try:
            _, result = await app.run_task("x", agent_id="test-agent", task_id="t1")
            task = await app.storage.get_task("t1")
        finally:
            await app.stop()

        assert result.success is False
        assert task.agent_status == AgentStatus.ERROR
        assert task.error_message == "boom"

    async def test_agent_raising_is_contained(self, tmp_path):
        write_agent(
            tmp_path,
            "rogue",
            make_config("rogue"),
            code=(
                "from agentcore.registry import BaseAgent\n\n"
                "class Agent(BaseAgent):\n"
                "    async def execute(self, context):\n"
                "        raise RuntimeError('contract broken')\n"
            ),
        )
        app = Application(db_path=":memory:", agents_dir=str(tmp_path), api_key="k", log_source=StaticLogSource())
        await app.start()
        try:
            _, result = await app.run_task("x", agent_id="rogue", task_id="t1")
            task = await app.storage.get_task("t1")
        finally:
            await app.stop()

        assert result.success is False
        assert task.agent_status == AgentStatus.ERROR

    async def test_unknown_agent(self, application):
        with pytest.raises(AgentNotFoundError):
            await application.run_task("x", agent_id="ghost")

    async def test_missing_agent_id_without_default(self, application):
        application._default_agent_id = None
        with pytest.raises(ValueError):
            await application.run_task("x")

    async def test_default_agent_id(self, monkeypatch, agents_dir):
        monkeypatch.setenv("DEFAULT_AGENT_ID", "test-agent")
        runtime = ScriptedRuntime(scenario_messages())
        app = Application(
            db_path=":memory:",
            agents_dir=str(agents_dir),
            api_key="k",
            runtime_factory=lambda ctx: runtime,
            log_source=StaticLogSource(),
        )
        await app.start()
        try:
            _, result = await app.run_task("x")
        finally:
            await app.stop()
        assert result.success is True

    async def test_missing_credential(self, monkeypatch, agents_dir):
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
        app = Application(db_path=":memory:", agents_dir=str(agents_dir), log_source=StaticLogSource())
        await app.start()
        try:
            with pytest.raises(MissingCredentialError):
                await app.run_task("x", agent_id="test-agent")
        finally:
            await app.stop()

    async def test_running_task_is_rejected(self, application):
        application._running.add("t1")
        with pytest.raises(TaskAlreadyRunningError):
            await application.run_task("x", agent_id="test-agent", task_id="t1")

    async def test_rerun_clears_previous_error(self, application, runtime):
        runtime.messages = []
        runtime.error = RuntimeError("boom")
        await application.run_task("x", agent_id="test-agent", task_id="t1")

        runtime.messages = scenario_messages()
        runtime.error = None
        _, result = await application.run_task("x", agent_id="test-agent", task_id="t1")

        task = await application.storage.get_task("t1")
        assert result.success is True
        assert task.agent_status == AgentStatus.SUCCESS
        assert task.agent_response == "hello"
        assert task.error_message is None

    async def test_rerun_replaces_timeline(self, application):
        await application.run_task("x", agent_id="test-agent", task_id="t1")
        _, result = await application.run_task("x", agent_id="test-agent", task_id="t1")

        stored = await application.storage.get_task_logs("t1")
        assert [e.type for e in stored] == [
            LogEntryType.SESSION,
            LogEntryType.MESSAGE,
            LogEntryType.COST,
            LogEntryType.COMPLETION,
        ]
        assert [e.id for e in stored] == [e.id for e in result.logs]

    async def test_rerun_after_finish_is_allowed(self, application):
        await application.run_task("x", agent_id="test-agent", task_id="t1")
        _, result = await application.run_task("x", agent_id="test-agent", task_id="t1")

        assert result.success is True
        assert not application.is_running("t1")


class TestGetLogBlocks:
    """Tests for Application.get_log_blocks()."""

    async def test_auto_prefers_structured(self, application):
        await application.run_task("x", agent_id="test-agent", task_id="t1")

        blocks, source = await application.get_log_blocks("t1")

        assert source == "structured"
        assert [b.type for b in blocks][:3] == [
            LogEntryType.SESSION,
            LogEntryType.MESSAGE,
            LogEntryType.COST,
        ]
        assert blocks[0].id == "log-0"

    async def test_auto_falls_back_to_raw(self, application):
        application._log_source.lines = [
            "===== AGENT EXECUTION START =====",
            "Task ID: remote",
            "[MESSAGE #1]",
        ]
        blocks, source = await application.get_log_blocks("remote")

        assert source == "raw"
        assert blocks[-1].type == LogEntryType.MESSAGE

    async def test_forced_sources(self, application):
        await application.run_task("x", agent_id="test-agent", task_id="t1")

        raw, raw_source = await application.get_log_blocks("t1", "raw")
        structured, structured_source = await application.get_log_blocks("missing", "structured")

        assert (raw, raw_source) == ([], "raw")
        assert (structured, structured_source) == ([], "structured")

    async def test_raw_without_task_id_parses_whole_buffer(self, application):
        application._log_source.lines = [
            "===== AGENT EXECUTION START =====",
            "Task ID: a",
            "[MESSAGE #1]",
            "===== AGENT EXECUTION START =====",
            "Task ID: b",
            "[MESSAGE #1]",
        ]
        blocks, source = await application.get_log_blocks(None, "raw")

        assert source == "raw"
        assert [b.type for b in blocks].count(LogEntryType.MESSAGE) == 2

    async def test_task_id_required_for_stored_timeline(self, application):
        with pytest.raises(ValueError, match="taskId"):
            await application.get_log_blocks(None, "auto")
        with pytest.raises(ValueError, match="taskId"):
            await application.get_log_blocks(None, "structured")

    async def test_invalid_source(self, application):
        with pytest.raises(ValueError):
            await application.get_log_blocks("t1", "magic")


class TestApplicationReset:
    """Tests for Application.reset()."""

    async def test_reset_clears_storage(self, application):
        await application.run_task("x", agent_id="test-agent", task_id="t1")
        await application.reset()

        assert await application.storage.get_task("t1") is None
        assert application.registry.has_agent("test-agent")
