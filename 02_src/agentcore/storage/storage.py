"""SQLite storage implementation."""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol

import aiosqlite

from ..config import resolve_db_path
from ..models import AgentStatus, LogEntry, LogEntryType, Task


class IStorage(Protocol):
    """Persistent storage for tasks and their timelines (SQLite)."""

    async def init(self) -> None:
        """Initialize database and create tables."""
        ...

    async def close(self) -> None:
        """Close database connection."""
        ...

    # Tasks
    async def save_task(self, task: Task) -> None:
        """Insert or replace a task record."""
        ...

    async def get_task(self, task_id: str) -> Task | None:
        """Get a task by ID."""
        ...

    async def update_task_status(
        self,
        task_id: str,
        status: AgentStatus,
        *,
        agent_response: str | None = None,
        error_message: str | None = None,
        cost_usd: float | None = None,
    ) -> bool:
        """Update status and outcome fields; False if the task does not exist."""
        ...

    # Task logs
    async def append_task_log(self, task_id: str, entry: LogEntry) -> int:
        """Append a LogEntry and return its sequence number."""
        ...

    async def get_task_logs(self, task_id: str, offset: int = 0) -> list[LogEntry]:
        """Get a task's LogEntries in append order, skipping the first *offset*."""
        ...

    async def count_task_logs(self, task_id: str) -> int:
        """Number of LogEntries stored for a task."""
        ...

    async def clear_task_logs(self, task_id: str) -> None:
        """Drop a task's timeline before it is executed again."""
        ...

    # Lifecycle
    async def clear(self) -> None:
        """Clear all data."""
        ...


def _ts(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


def _parse_ts(value: str) -> datetime:
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class Storage:
    """SQLite storage implementation."""

    def __init__(self, db_path: str | Path | None = None):
        if db_path is None:
            self._db_path = resolve_db_path()
        else:
            self._db_path = resolve_db_path(db_path)
        self._conn: aiosqlite.Connection | None = None

    async def init(self) -> None:
        """Initialize database and create tables."""
        self._conn = await aiosqlite.connect(self._db_path)

        # Read and execute schema
        schema_path = Path(__file__).parent / "schema.sql"
        with open(schema_path, "r", encoding="utf-8") as f:
            schema_sql = f.read()
        await self._conn.executescript(schema_sql)
        await self._conn.commit()

    async def close(self) -> None:
        """Close database connection."""
        if self._conn:
            await self._conn.close()
            self._conn = None

    # Tasks
    async def save_task(self, task: Task) -> None:
        """Insert or replace a task record."""
        if not self._conn:
            raise RuntimeError("Storage not initialized")

        await self._conn.execute(
            """
            INSERT OR REPLACE INTO tasks
            (id, title, agent_id, agent_status, agent_response, error_message,
             cost_usd, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                task.id,
                task.title,
                task.agent_id,
                task.agent_status.value,
                task.agent_response,
                task.error_message,
                task.cost_usd,
                _ts(task.created_at),
                _ts(task.updated_at),
            ),
        )
        await self._conn.commit()

    async def get_task(self, task_id: str) -> Task | None:
        """Get a task by ID."""
        if not self._conn:
            raise RuntimeError("Storage not initialized")

        cursor = await self._conn.execute(
            """
            SELECT id, title, agent_id, agent_status, agent_response,
                   error_message, cost_usd, created_at, updated_at
            FROM tasks
            WHERE id = ?
            """,
            (task_id,),
        )
        row = await cursor.fetchone()

        if not row:
            return None

        return Task(
            id=row[0],
            title=row[1],
            agent_id=row[2],
            agent_status=AgentStatus(row[3]),
            agent_response=row[4],
            error_message=row[5],
            cost_usd=row[6],
            created_at=_parse_ts(row[7]),
            updated_at=_parse_ts(row[8]),
        )

    async def update_task_status(
        self,
        task_id: str,
        status: AgentStatus,
        *,
        agent_response: str | None = None,
        error_message: str | None = None,
        cost_usd: float | None = None,
    ) -> bool:
        """Update status and outcome fields; False if the task does not exist."""
        if not self._conn:
            raise RuntimeError("Storage not initialized")

        assignments = ["agent_status = ?", "updated_at = ?"]
        params: list = [status.value, _ts(datetime.now(timezone.utc))]
        if agent_response is not None:
            assignments.append("agent_response = ?")
            params.append(agent_response)
        if error_message is not None:
            assignments.append("error_message = ?")
            params.append(error_message)
        if cost_usd is not None:
            assignments.append("cost_usd = ?")
            params.append(cost_usd)
        params.append(task_id)

        cursor = await self._conn.execute(
            f"UPDATE tasks SET {', '.join(assignments)} WHERE id = ?",
            params,
        )
        await self._conn.commit()
        return cursor.rowcount > 0

    # Task logs
    async def append_task_log(self, task_id: str, entry: LogEntry) -> int:
        """Append a LogEntry and return its sequence number."""
        if not self._conn:
            raise RuntimeError("Storage not initialized")

        # seq is allocated in the same statement as the insert
        await self._conn.execute(
            """
            INSERT INTO task_logs (task_id, seq, id, timestamp, type, message, data)
            SELECT ?, COALESCE(MAX(seq), 0) + 1, ?, ?, ?, ?, ?
            FROM task_logs
            WHERE task_id = ?
            """,
            (
                task_id,
                entry.id,
                _ts(entry.timestamp),
                entry.type.value,
                entry.message,
                json.dumps(entry.data, default=str) if entry.data is not None else None,
                task_id,
            ),
        )
        await self._conn.commit()
        return await self.count_task_logs(task_id)

    async def get_task_logs(self, task_id: str, offset: int = 0) -> list[LogEntry]:
        """Get a task's LogEntries in append order, skipping the first *offset*."""
        if not self._conn:
            raise RuntimeError("Storage not initialized")

        cursor = await self._conn.execute(
            """
            SELECT id, timestamp, type, message, data
            FROM task_logs
            WHERE task_id = ?
            ORDER BY seq ASC
            LIMIT -1 OFFSET ?
            """,
            (task_id, max(offset, 0)),
        )
        rows = await cursor.fetchall()

        return [
            LogEntry(
                id=row[0],
                timestamp=_parse_ts(row[1]),
                type=LogEntryType(row[2]),
                message=row[3],
                data=json.loads(row[4]) if row[4] is not None else None,
            )
            for row in rows
        ]

    async def count_task_logs(self, task_id: str) -> int:
        """Number of LogEntries stored for a task."""
        if not self._conn:
            raise RuntimeError("Storage not initialized")

        cursor = await self._conn.execute(
            "SELECT COUNT(*) FROM task_logs WHERE task_id = ?",
            (task_id,),
        )
        row = await cursor.fetchone()
        return row[0]

    async def clear_task_logs(self, task_id: str) -> None:
        """Drop a task's timeline before it is executed again."""
        if not self._conn:
            raise RuntimeError("Storage not initialized")

        await self._conn.execute("DELETE FROM task_logs WHERE task_id = ?", (task_id,))
        await self._conn.commit()

    # Lifecycle
    async def clear(self) -> None:
        """Clear all data."""
        if not self._conn:
            raise RuntimeError("Storage not initialized")

        for table in ["task_logs", "tasks"]:
            await self._conn.execute(f"DELETE FROM {table}")

        await self._conn.commit()
