"""Tools the model-interaction runtime can execute on the model's behalf."""

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Iterable, Sequence

ToolHandler = Callable[[dict[str, Any]], Awaitable[str]]

PROGRESS_TOOL_NAME = "report_progress"


@dataclass(frozen=True)
class Tool:
    name: str
    description: str
    handler: ToolHandler
    input_schema: dict[str, Any] = field(
        default_factory=lambda: {"type": "object", "properties": {}}
    )

    def to_api(self) -> dict[str, Any]:
        """Tool definition in Messages API format."""
        return {
            "name": self.name,
            "description": self.description,
            "input_schema": self.input_schema,
        }


class ToolSet:
    """Named collection of tools offered to the model."""

    def __init__(self, tools: Iterable[Tool] = ()):
        self._tools: dict[str, Tool] = {}
        for tool in tools:
            self.add(tool)

    def add(self, tool: Tool) -> None:
        if tool.name in self._tools:
            raise ValueError(f"duplicate tool name: {tool.name}")
        self._tools[tool.name] = tool

    def get(self, name: str) -> Tool | None:
        return self._tools.get(name)

    def to_api(self) -> list[dict[str, Any]]:
        return [tool.to_api() for tool in self._tools.values()]

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools


def progress_tool(milestones: Sequence[str]) -> Tool:
    """Build the ``report_progress`` tool for a fixed milestone list."""

    async def _acknowledge(tool_input: dict[str, Any]) -> str:
        milestone = tool_input.get("milestone")
        if milestone not in milestones:
            raise ValueError(f"unknown milestone: {milestone}")
        return f"Recorded milestone {milestone} as {tool_input.get('status', 'completed')}"

    return Tool(
        name=PROGRESS_TOOL_NAME,
        description=(
            "Report that a workflow milestone has been reached. Call it once "
            "for every milestone as soon as it is completed."
        ),
        handler=_acknowledge,
        input_schema={
            "type": "object",
            "properties": {
                "milestone": {"type": "string", "enum": list(milestones)},
                "status": {"type": "string", "enum": ["completed", "failed"]},
                "note": {"type": "string"},
            },
            "required": ["milestone"],
        },
    )
