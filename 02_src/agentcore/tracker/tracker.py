"""Tracker implementation for persisting task timelines."""

from typing import Protocol

from ..logging_config import get_logger
from ..models import LogEntry, LogSink
from ..storage import IStorage

logger = get_logger(__name__)


class ITracker(Protocol):
    """Persists LogEntries as an execution session emits them."""

    async def track(self, task_id: str, entry: LogEntry) -> None:
        """Append *entry* to the task's timeline in Storage."""
        ...

    def sink_for(self, task_id: str) -> LogSink:
        """Callback suitable for ``ExecutionContext.log_sink``."""
        ...


class TaskTracker:
    """Appends LogEntries to task storage in emission order."""

    def __init__(self, storage: IStorage):
        self._storage = storage

    async def track(self, task_id: str, entry: LogEntry) -> None:
        """Append *entry* to the task's timeline in Storage."""
        seq = await self._storage.append_task_log(task_id, entry)
        logger.debug("Stored %s entry #%s for task %s", entry.type.value, seq, task_id)

    def sink_for(self, task_id: str) -> LogSink:
        """Callback suitable for ``ExecutionContext.log_sink``."""

        async def sink(entry: LogEntry) -> None:
            await self.track(task_id, entry)

        return sink
