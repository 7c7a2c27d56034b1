"""Agent plugin contract and registry."""

from .base_agent import BaseAgent, PromptAgent, RuntimeFactory, default_runtime_factory
from .registry import AgentLoadError, AgentRegistry

__all__ = [
    "AgentLoadError",
    "AgentRegistry",
    "BaseAgent",
    "PromptAgent",
    "RuntimeFactory",
    "default_runtime_factory",
]
