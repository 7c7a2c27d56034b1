"""Task record data models."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


class AgentStatus(str, Enum):
    """Execution status of the agent assigned to a task."""

    IDLE = "idle"
    RUNNING = "running"
    SUCCESS = "success"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (AgentStatus.SUCCESS, AgentStatus.ERROR)


@dataclass
class Task:
    """The persisted part of a task that the execution pipeline writes to."""

    id: str
    title: str = ""
    agent_id: str | None = None
    agent_status: AgentStatus = AgentStatus.IDLE
    agent_response: str | None = None
    error_message: str | None = None
    cost_usd: float = 0.0
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
