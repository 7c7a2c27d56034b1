"""Tests for AgentRegistry."""

import logging

import pytest

from conftest import make_config, write_agent

from agentcore.models import AgentCapability
from agentcore.registry import AgentLoadError, AgentRegistry, BaseAgent


class TestLoadAll:
    """Tests for AgentRegistry.load_all()."""

    def test_valid_and_missing_config(self, tmp_path, caplog):
        """One good agent, one without config.json: one loaded, one logged failure."""
        write_agent(tmp_path, "good", make_config("good"))
        write_agent(tmp_path, "broken", config=None)

        registry = AgentRegistry(tmp_path)
        with caplog.at_level(logging.ERROR, logger="agentcore.registry.registry"):
            count = registry.load_all()

        assert count == 1
        assert registry.has_agent("good")
        assert list(registry.failures) == ["broken"]
        failures = [r for r in caplog.records if r.levelno == logging.ERROR]
        assert len(failures) == 1
        assert "broken" in failures[0].getMessage()

    def test_missing_directory(self, tmp_path):
        registry = AgentRegistry(tmp_path / "nope")
        assert registry.load_all() == 0
        assert registry.agent_count == 0

    def test_hidden_directories_skipped(self, tmp_path):
        write_agent(tmp_path, ".cache", make_config("hidden"))
        write_agent(tmp_path, "__pycache__", make_config("pycache"))

        registry = AgentRegistry(tmp_path)
        assert registry.load_all() == 0
        assert registry.failures == {}

    def test_registered_by_descriptor_id(self, tmp_path):
        write_agent(tmp_path, "folder-name", make_config("real-id"))

        registry = AgentRegistry(tmp_path)
        registry.load_all()

        assert registry.has_agent("real-id")
        assert not registry.has_agent("folder-name")


class TestLoadAgentFailures:
    """Each LoadError case is isolated to its directory."""

    def test_missing_module(self, tmp_path):
        write_agent(tmp_path, "a", make_config("a"), code=None)
        with pytest.raises(AgentLoadError, match="implementation not found"):
            AgentRegistry(tmp_path).load_agent("a")

    def test_invalid_json(self, tmp_path):
        agent_dir = write_agent(tmp_path, "a", make_config("a"))
        (agent_dir / "config.json").write_text("{not json", encoding="utf-8")
        with pytest.raises(AgentLoadError, match="Invalid agent config"):
            AgentRegistry(tmp_path).load_agent("a")

    def test_unsupported_schema_version(self, tmp_path):
        write_agent(tmp_path, "a", make_config("a", schemaVersion=2))
        with pytest.raises(AgentLoadError, match="schemaVersion"):
            AgentRegistry(tmp_path).load_agent("a")

    def test_unknown_capability(self, tmp_path):
        write_agent(tmp_path, "a", make_config("a", capabilities=["time-travel"]))
        with pytest.raises(AgentLoadError):
            AgentRegistry(tmp_path).load_agent("a")

    def test_missing_agent_class(self, tmp_path):
        write_agent(tmp_path, "a", make_config("a"), code="VALUE = 1\n")
        with pytest.raises(AgentLoadError, match="No Agent class"):
            AgentRegistry(tmp_path).load_agent("a")

    def test_agent_not_deriving_from_base(self, tmp_path):
        write_agent(tmp_path, "a", make_config("a"), code="class Agent:\n    pass\n")
        with pytest.raises(AgentLoadError, match="No Agent class"):
            AgentRegistry(tmp_path).load_agent("a")

    def test_module_import_error(self, tmp_path):
        write_agent(tmp_path, "a", make_config("a"), code="raise RuntimeError('boom')\n")
        with pytest.raises(AgentLoadError, match="boom"):
            AgentRegistry(tmp_path).load_agent("a")

    def test_duplicate_id(self, tmp_path):
        write_agent(tmp_path, "one", make_config("same"))
        write_agent(tmp_path, "two", make_config("same"))

        registry = AgentRegistry(tmp_path)
        assert registry.load_all() == 1
        assert "Duplicate agent id" in registry.failures["two"]

    def test_custom_module_name(self, tmp_path):
        agent_dir = write_agent(tmp_path, "a", make_config("a", module="impl.py"), code=None)
        (agent_dir / "impl.py").write_text(
            "from agentcore.registry import PromptAgent\n\nclass Agent(PromptAgent):\n    pass\n",
            encoding="utf-8",
        )
        agent = AgentRegistry(tmp_path).load_agent("a")
        assert isinstance(agent, BaseAgent)


class TestLookups:
    """Read-only lookups."""

    @pytest.fixture
    def registry(self, tmp_path):
        write_agent(
            tmp_path,
            "researcher",
            make_config(
                "researcher",
                name="Web Researcher",
                capabilities=["web-research", "data-analysis"],
                tags=["research"],
            ),
        )
        write_agent(
            tmp_path,
            "deployer",
            make_config(
                "deployer",
                name="Deployer",
                capabilities=["task-execution"],
                tags=["deployment", "vercel"],
            ),
        )
        reg = AgentRegistry(tmp_path)
        reg.load_all()
        return reg

    def test_get_agent_and_config(self, registry):
        agent = registry.get_agent("deployer")
        assert agent is not None
        assert agent.agent_id == "deployer"
        assert registry.get_config("deployer").tags == ("deployment", "vercel")
        assert registry.get_agent("ghost") is None
        assert registry.get_config("ghost") is None

    def test_list_agents(self, registry):
        assert sorted(c.id for c in registry.list_agents()) == ["deployer", "researcher"]
        assert registry.agent_count == 2

    def test_search_by_capability(self, registry):
        found = registry.search_agents(capability=AgentCapability.WEB_RESEARCH)
        assert [c.id for c in found] == ["researcher"]
        assert [c.id for c in registry.search_agents(capability="task-execution")] == ["deployer"]

    def test_search_by_tag(self, registry):
        assert [c.id for c in registry.search_agents(tag="vercel")] == ["deployer"]
        assert registry.search_agents(tag="none") == []

    def test_search_by_name_is_case_insensitive(self, registry):
        assert [c.id for c in registry.search_agents(name="RESEARCH")] == ["researcher"]

    def test_search_criteria_combine(self, registry):
        assert registry.search_agents(capability="data-analysis", tag="vercel") == []

    def test_runtime_factory_is_passed_to_agents(self, tmp_path):
        write_agent(tmp_path, "a", make_config("a"))

        def factory(context):
            return None

        registry = AgentRegistry(tmp_path, runtime_factory=factory)
        registry.load_all()
        assert registry.get_agent("a")._runtime_factory is factory
