"""Core data models for the agent runner."""

from .agents import (
    AgentCapability,
    AgentDescriptor,
    ExecutionContext,
    ExecutionMetadata,
    ExecutionResult,
    LogSink,
)
from .logs import LogBlock, LogEntry, LogEntryType
from .stream import (
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
from .tasks import AgentStatus, Task

__all__ = [
    # Agents
    "AgentCapability",
    "AgentDescriptor",
    "ExecutionContext",
    "ExecutionMetadata",
    "ExecutionResult",
    "LogSink",
    # Timeline
    "LogBlock",
    "LogEntry",
    "LogEntryType",
    # Stream
    "AssistantContent",
    "ContentBlock",
    "InitMessage",
    "ResultMessage",
    "StreamMessage",
    "TextBlock",
    "ThinkingBlock",
    "TokenUsage",
    "ToolResultBlock",
    "ToolUseBlock",
    # Tasks
    "AgentStatus",
    "Task",
]
