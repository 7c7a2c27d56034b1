"""Timeline data models."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any


class LogEntryType(str, Enum):
    """Closed set of timeline entry types."""

    SESSION = "session"
    MESSAGE = "message"
    TOOL = "tool"
    COST = "cost"
    COMPLETION = "completion"
    ERROR = "error"
    INFO = "info"


@dataclass(frozen=True)
class LogEntry:
    """A structured timeline item emitted live by an execution session."""

    id: str
    timestamp: datetime
    type: LogEntryType
    message: str
    data: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "timestamp": self.timestamp.isoformat(),
            "type": self.type.value,
            "message": self.message,
            "data": self.data,
        }


@dataclass(frozen=True)
class LogBlock:
    """A timeline item reconstructed from captured console text."""

    id: str
    timestamp: str | None
    message: str
    type: LogEntryType

    @classmethod
    def from_entry(cls, entry: LogEntry, index: int) -> "LogBlock":
        """Present a persisted LogEntry in the reconstructed-block shape."""
        return cls(
            id=f"log-{index}",
            timestamp=entry.timestamp.isoformat(),
            message=entry.message,
            type=entry.type,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "message": self.message,
            "type": self.type.value,
        }
