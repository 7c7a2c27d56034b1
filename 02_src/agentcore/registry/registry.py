"""Discovery and lookup of agent plugins."""

import importlib.util
import json
import sys
from pathlib import Path

from pydantic import ValidationError

from ..logging_config import get_logger
from ..models import AgentCapability, AgentDescriptor
from .base_agent import BaseAgent, RuntimeFactory

logger = get_logger(__name__)

CONFIG_FILENAME = "config.json"
PLUGIN_CLASS_ATTR = "Agent"


class AgentLoadError(Exception):
    """One agent directory could not be turned into a registered plugin."""


class AgentRegistry:
    """In-memory map of agent id -> plugin instance and descriptor.

    Each subdirectory of ``agents_dir`` holds a ``config.json`` descriptor and
    a Python module whose ``Agent`` attribute is a :class:`BaseAgent`
    subclass. One broken directory never prevents the others from loading.
    """

    def __init__(self, agents_dir: str | Path, runtime_factory: RuntimeFactory | None = None):
        self._agents_dir = Path(agents_dir)
        self._runtime_factory = runtime_factory
        self._agents: dict[str, BaseAgent] = {}
        self._configs: dict[str, AgentDescriptor] = {}
        self.failures: dict[str, str] = {}

    def load_all(self) -> int:
        """Load every agent directory; return the number of registered agents."""
        logger.info("Loading agents from %s", self._agents_dir)
        if not self._agents_dir.is_dir():
            logger.error("Agents directory not found: %s", self._agents_dir)
            return 0

        dirs = sorted(
            p for p in self._agents_dir.iterdir()
            if p.is_dir() and not p.name.startswith((".", "_"))
        )
        logger.info("Found %s potential agent directories", len(dirs))

        for agent_dir in dirs:
            try:
                self.load_agent(agent_dir.name)
            except AgentLoadError as e:
                self.failures[agent_dir.name] = str(e)
                logger.error("Failed to load agent %s: %s", agent_dir.name, e)

        logger.info("Successfully loaded %s agents", len(self._agents))
        return len(self._agents)

    def load_agent(self, dir_name: str) -> BaseAgent:
        """Load the agent in ``agents_dir/dir_name``.

        Raises:
            AgentLoadError: on a missing/invalid descriptor, a missing or
                broken module, a missing ``Agent`` class or a duplicate id.
        """
        agent_dir = self._agents_dir / dir_name
        config_path = agent_dir / CONFIG_FILENAME
        if not config_path.is_file():
            raise AgentLoadError(f"Agent config not found: {config_path}")

        try:
            raw = json.loads(config_path.read_text(encoding="utf-8"))
            descriptor = AgentDescriptor.model_validate(raw)
        except (json.JSONDecodeError, ValidationError) as e:
            raise AgentLoadError(f"Invalid agent config {config_path}: {e}") from e

        if descriptor.id in self._agents:
            raise AgentLoadError(f"Duplicate agent id: {descriptor.id}")

        module_path = agent_dir / descriptor.module
        if not module_path.is_file():
            raise AgentLoadError(f"Agent implementation not found: {module_path}")

        agent_class = self._import_agent_class(descriptor.id, module_path)
        try:
            agent = agent_class(descriptor, runtime_factory=self._runtime_factory)
        except Exception as e:
            raise AgentLoadError(f"Could not instantiate agent {descriptor.id}: {e}") from e

        self._agents[descriptor.id] = agent
        self._configs[descriptor.id] = descriptor
        logger.info("Loaded agent: %s (%s)", descriptor.name, descriptor.id)
        return agent

    @staticmethod
    def _import_agent_class(agent_id: str, module_path: Path) -> type[BaseAgent]:
        module_name = "agent_plugin_" + agent_id.replace("-", "_")
        spec = importlib.util.spec_from_file_location(module_name, module_path)
        if spec is None or spec.loader is None:
            raise AgentLoadError(f"Cannot import {module_path}")

        module = importlib.util.module_from_spec(spec)
        sys.modules[module_name] = module
        try:
            spec.loader.exec_module(module)
        except Exception as e:
            sys.modules.pop(module_name, None)
            raise AgentLoadError(f"Error importing {module_path}: {e}") from e

        agent_class = getattr(module, PLUGIN_CLASS_ATTR, None)
        if not (isinstance(agent_class, type) and issubclass(agent_class, BaseAgent)):
            raise AgentLoadError(
                f"No {PLUGIN_CLASS_ATTR} class deriving from BaseAgent in {module_path}"
            )
        return agent_class

    # Lookups

    def get_agent(self, agent_id: str) -> BaseAgent | None:
        return self._agents.get(agent_id)

    def get_config(self, agent_id: str) -> AgentDescriptor | None:
        return self._configs.get(agent_id)

    def list_agents(self) -> list[AgentDescriptor]:
        return list(self._configs.values())

    def search_agents(
        self,
        capability: AgentCapability | str | None = None,
        tag: str | None = None,
        name: str | None = None,
    ) -> list[AgentDescriptor]:
        """Filter descriptors; every given criterion must match."""
        if capability is not None:
            capability = AgentCapability(capability)
        results = []
        for config in self._configs.values():
            if capability is not None and capability not in config.capabilities:
                continue
            if tag is not None and tag not in config.tags:
                continue
            if name is not None and name.lower() not in config.name.lower():
                continue
            results.append(config)
        return results

    def has_agent(self, agent_id: str) -> bool:
        return agent_id in self._agents

    @property
    def agent_count(self) -> int:
        return len(self._agents)
