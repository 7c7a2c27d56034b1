"""LLM module."""

from .llm_provider import AnthropicRuntime, IModelRuntime
from .tools import PROGRESS_TOOL_NAME, Tool, ToolSet, progress_tool

__all__ = [
    "AnthropicRuntime",
    "IModelRuntime",
    "PROGRESS_TOOL_NAME",
    "Tool",
    "ToolSet",
    "progress_tool",
]
