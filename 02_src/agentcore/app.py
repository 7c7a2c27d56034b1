"""Application bootstrap and lifecycle management."""

import os
import uuid
from datetime import datetime, timezone
from typing import Any, Protocol

from .config import (
    DEFAULT_RAW_LOG_TAIL_LINES,
    DEFAULT_SSE_POLL_INTERVAL,
    DEFAULT_TRANSCRIPT_PATH,
    resolve_agents_dir,
    resolve_db_path,
)
from .delivery import LogStreamer
from .logging_config import get_logger
from .models import (
    AgentStatus,
    ExecutionContext,
    ExecutionResult,
    LogBlock,
    Task,
)
from .parsing import CommandLogSource, FileLogSource, ILogSource, parse_log_blocks
from .registry import AgentRegistry, RuntimeFactory
from .session import Transcript
from .storage import IStorage, Storage
from .tracker import ITracker, TaskTracker

logger = get_logger(__name__)

LOG_SOURCES = ("auto", "raw", "structured")


class AgentNotFoundError(LookupError):
    """No registered agent has the requested id."""


class TaskAlreadyRunningError(RuntimeError):
    """An execution for this task id is already in flight."""


class MissingCredentialError(RuntimeError):
    """No model credential is configured."""


class IApplication(Protocol):
    """Bootstrap and lifecycle."""

    async def start(self) -> None:
        """Initialize components in dependency order."""
        ...

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        ...

    async def reset(self) -> None:
        """Reset data between test runs."""
        ...


class Application:
    """Main application bootstrap."""

    def __init__(
        self,
        db_path: str | None = None,
        agents_dir: str | None = None,
        api_key: str | None = None,
        runtime_factory: RuntimeFactory | None = None,
        log_source: ILogSource | None = None,
        poll_interval: float | None = None,
        transcript: Transcript | None = None,
    ):
        env_db_path = os.getenv("DATABASE_URL") if db_path is None else db_path
        self._db_path = resolve_db_path(env_db_path)
        env_agents_dir = os.getenv("AGENTS_DIR") if agents_dir is None else agents_dir
        self._agents_dir = resolve_agents_dir(env_agents_dir)

        self._api_key = api_key or os.getenv("ANTHROPIC_API_KEY")
        self._base_url = os.getenv("ANTHROPIC_BASE_URL")
        self._model = os.getenv("MODEL")
        self._default_agent_id = os.getenv("DEFAULT_AGENT_ID")
        self._runtime_factory = runtime_factory
        self._poll_interval = (
            poll_interval
            if poll_interval is not None
            else float(os.getenv("SSE_POLL_INTERVAL", DEFAULT_SSE_POLL_INTERVAL))
        )
        self._transcript = transcript or Transcript()

        # Components (will be initialized in start())
        self._storage: IStorage | None = None
        self._registry: AgentRegistry | None = None
        self._tracker: ITracker | None = None
        self._streamer: LogStreamer | None = None
        self._log_source: ILogSource | None = log_source

        self._running: set[str] = set()

    async def start(self) -> None:
        """Initialize components in dependency order."""
        logger.info("Starting application")

        # 1. Storage (no dependencies)
        self._storage = Storage(self._db_path)
        await self._storage.init()
        logger.info("Storage initialized")

        # 2. Registry (agent plugins)
        self._registry = AgentRegistry(self._agents_dir, runtime_factory=self._runtime_factory)
        self._registry.load_all()

        # 3. Tracker (depends on Storage)
        self._tracker = TaskTracker(self._storage)

        # 4. Streamer (depends on Storage)
        self._streamer = LogStreamer(self._storage, poll_interval=self._poll_interval)

        # 5. Raw log source
        if self._log_source is None:
            self._log_source = _log_source_from_env()
        logger.info("All components initialized successfully")

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        if self._storage:
            await self._storage.close()
            logger.info("Storage closed")

    async def reset(self) -> None:
        """Reset data between test runs."""
        if self._storage:
            await self._storage.clear()
            logger.info("Storage cleared")

    # Execution

    @property
    def has_credential(self) -> bool:
        return bool(self._api_key)

    @property
    def default_agent_id(self) -> str | None:
        return self._default_agent_id

    def is_running(self, task_id: str) -> bool:
        return task_id in self._running

    async def run_task(
        self,
        prompt: str,
        agent_id: str | None = None,
        task_id: str | None = None,
        parameters: dict[str, Any] | None = None,
    ) -> tuple[str, ExecutionResult]:
        """Execute *prompt* with a registered agent and persist the outcome.

        Raises:
            ValueError: no agent id given and no default configured.
            AgentNotFoundError: unknown agent id.
            TaskAlreadyRunningError: *task_id* is already executing.
            MissingCredentialError: no model credential configured.
        """
        agent_id = agent_id or self._default_agent_id
        if not agent_id:
            raise ValueError("agentId is required")
        agent = self.registry.get_agent(agent_id)
        if agent is None:
            raise AgentNotFoundError(f"Agent not found: {agent_id}")
        if not self._api_key:
            raise MissingCredentialError("ANTHROPIC_API_KEY not configured")

        task_id = task_id or str(uuid.uuid4())
        if task_id in self._running:
            raise TaskAlreadyRunningError(f"Task {task_id} is already running")
        self._running.add(task_id)

        try:
            task = await self.storage.get_task(task_id)
            if task is None:
                await self.storage.save_task(
                    Task(
                        id=task_id,
                        title=prompt[:80],
                        agent_id=agent_id,
                        agent_status=AgentStatus.RUNNING,
                    )
                )
            else:
                # A re-run replaces the previous outcome and timeline
                task.agent_id = agent_id
                task.agent_status = AgentStatus.RUNNING
                task.agent_response = None
                task.error_message = None
                task.cost_usd = 0.0
                task.updated_at = datetime.now(timezone.utc)
                await self.storage.save_task(task)
                await self.storage.clear_task_logs(task_id)

            logger.info("Executing task %s with agent %s", task_id, agent_id)
            self._transcript.execution_start(agent_id, task_id, prompt)

            context = ExecutionContext(
                task_id=task_id,
                prompt=prompt,
                credential=self._api_key,
                parameters=parameters or {},
                model=self._model,
                base_url=self._base_url,
                log_sink=self.tracker.sink_for(task_id),
            )
            try:
                result = await agent.execute(context)
            except Exception as e:
                logger.error("Agent %s raised for task %s: %s", agent_id, task_id, e, exc_info=True)
                result = ExecutionResult(success=False, error=str(e), data={"errors": [str(e)]})

            status = AgentStatus.SUCCESS if result.success else AgentStatus.ERROR
            await self.storage.update_task_status(
                task_id,
                status,
                agent_response=result.response,
                error_message=result.error,
                cost_usd=result.metadata.cost_usd,
            )
            self._transcript.execution_end(task_id, result.success, result.error)
            logger.info(
                "Task %s finished: %s (cost $%.4f)",
                task_id,
                status.value,
                result.metadata.cost_usd,
            )
            return task_id, result
        finally:
            self._running.discard(task_id)

    async def get_log_blocks(
        self, task_id: str | None, source: str = "auto"
    ) -> tuple[list[LogBlock], str]:
        """Timeline of *task_id* as LogBlocks, plus the source actually used.

        ``auto`` prefers the persisted LogEntries and falls back to parsing
        captured console text. Without a task id only ``raw`` is allowed and
        the whole captured buffer is parsed.
        """
        if source not in LOG_SOURCES:
            raise ValueError(f"source must be one of {', '.join(LOG_SOURCES)}")
        if not task_id and source != "raw":
            raise ValueError("taskId is required unless source=raw")

        if source in ("auto", "structured"):
            entries = await self.storage.get_task_logs(task_id)
            if entries or source == "structured":
                blocks = [LogBlock.from_entry(entry, i) for i, entry in enumerate(entries)]
                return blocks, "structured"

        lines = await self.log_source.read_lines()
        return parse_log_blocks(lines, task_id or None), "raw"

    @property
    def storage(self) -> IStorage:
        """Get storage instance."""
        if not self._storage:
            raise RuntimeError("Application not started")
        return self._storage

    @property
    def registry(self) -> AgentRegistry:
        """Get agent registry instance."""
        if not self._registry:
            raise RuntimeError("Application not started")
        return self._registry

    @property
    def tracker(self) -> ITracker:
        """Get tracker instance."""
        if not self._tracker:
            raise RuntimeError("Application not started")
        return self._tracker

    @property
    def streamer(self) -> LogStreamer:
        """Get log streamer instance."""
        if not self._streamer:
            raise RuntimeError("Application not started")
        return self._streamer

    @property
    def log_source(self) -> ILogSource:
        """Get raw log source instance."""
        if not self._log_source:
            raise RuntimeError("Application not started")
        return self._log_source


def _log_source_from_env() -> ILogSource:
    command = os.getenv("LOG_SOURCE_COMMAND")
    if command:
        logger.info("Raw logs read from command: %s", command)
        return CommandLogSource(command)
    tail = int(os.getenv("RAW_LOG_TAIL_LINES", DEFAULT_RAW_LOG_TAIL_LINES))
    return FileLogSource(DEFAULT_TRANSCRIPT_PATH, tail=tail)
