"""Server-Sent-Events delivery of task timelines."""

import asyncio
import json
from typing import AsyncIterator, Awaitable, Callable

from ..config import DEFAULT_SSE_POLL_INTERVAL
from ..logging_config import get_logger
from ..models import LogEntry
from ..storage import IStorage

logger = get_logger(__name__)

DisconnectCheck = Callable[[], Awaitable[bool]]


def format_entry(entry: LogEntry) -> str:
    return f"data: {json.dumps(entry.to_dict(), default=str)}\n\n"


def format_end(status: str) -> str:
    return f"event: end\ndata: {json.dumps({'status': status})}\n\n"


class LogStreamer:
    """Replays a task's timeline, then pushes newly stored entries.

    Each viewer gets its own poll loop; there is no shared subscription.
    The loop ends when the task reaches a terminal status, is deleted, or
    the viewer disconnects.
    """

    def __init__(self, storage: IStorage, poll_interval: float = DEFAULT_SSE_POLL_INTERVAL):
        self._storage = storage
        self._poll_interval = poll_interval
        self.active_streams = 0

    async def stream(
        self,
        task_id: str,
        is_disconnected: DisconnectCheck | None = None,
    ) -> AsyncIterator[str]:
        """Yield SSE frames for *task_id*."""
        self.active_streams += 1
        sent = 0
        logger.info("SSE stream opened for task %s", task_id)
        try:
            while True:
                if is_disconnected is not None and await is_disconnected():
                    logger.info("SSE client disconnected from task %s", task_id)
                    break

                # Status is read before the logs so entries stored ahead of a
                # terminal status are always delivered.
                task = await self._storage.get_task(task_id)
                if task is None:
                    logger.info("Task %s no longer exists; closing stream", task_id)
                    break

                entries = await self._storage.get_task_logs(task_id, offset=sent)
                for entry in entries:
                    yield format_entry(entry)
                sent += len(entries)

                if task.agent_status.is_terminal:
                    yield format_end(task.agent_status.value)
                    break

                await asyncio.sleep(self._poll_interval)
        finally:
            self.active_streams -= 1
            logger.info("SSE stream closed for task %s after %s entries", task_id, sent)
