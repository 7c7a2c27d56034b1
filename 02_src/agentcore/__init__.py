"""Agent execution and log reconstruction core."""

from .app import (
    AgentNotFoundError,
    Application,
    IApplication,
    MissingCredentialError,
    TaskAlreadyRunningError,
)
from .cost import CostAccumulator, ModelPricing, compute_cost, pricing_for_model
from .delivery import LogStreamer
from .llm import AnthropicRuntime, IModelRuntime, Tool, ToolSet
from .models import (
    AgentCapability,
    AgentDescriptor,
    AgentStatus,
    ExecutionContext,
    ExecutionResult,
    LogBlock,
    LogEntry,
    LogEntryType,
    Task,
)
from .parsing import parse_log_blocks
from .registry import AgentLoadError, AgentRegistry, BaseAgent, PromptAgent
from .session import ExecutionSession
from .storage import IStorage, Storage
from .tracker import ITracker, TaskTracker

__all__ = [
    # Application
    "Application",
    "IApplication",
    "AgentNotFoundError",
    "MissingCredentialError",
    "TaskAlreadyRunningError",
    # Models
    "AgentCapability",
    "AgentDescriptor",
    "AgentStatus",
    "ExecutionContext",
    "ExecutionResult",
    "LogBlock",
    "LogEntry",
    "LogEntryType",
    "Task",
    # Components
    "AgentLoadError",
    "AgentRegistry",
    "AnthropicRuntime",
    "BaseAgent",
    "CostAccumulator",
    "ExecutionSession",
    "IModelRuntime",
    "IStorage",
    "ITracker",
    "LogStreamer",
    "ModelPricing",
    "PromptAgent",
    "Storage",
    "TaskTracker",
    "Tool",
    "ToolSet",
    "compute_cost",
    "parse_log_blocks",
    "pricing_for_model",
]
