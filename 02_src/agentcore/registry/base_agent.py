"""Agent plugin contract and the shared prompt-driven agent template."""

import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Callable, Mapping, Sequence

from ..llm import AnthropicRuntime, IModelRuntime, ToolSet, progress_tool
from ..llm.tools import PROGRESS_TOOL_NAME
from ..logging_config import get_logger
from ..models import (
    AgentDescriptor,
    ExecutionContext,
    ExecutionResult,
    LogEntry,
    LogEntryType,
)
from ..session import ExecutionSession, MilestoneTracker, PatternExtractor, Transcript

logger = get_logger(__name__)

RuntimeFactory = Callable[[ExecutionContext], IModelRuntime]


def default_runtime_factory(context: ExecutionContext) -> IModelRuntime:
    """Build an AnthropicRuntime from the credential and overrides in *context*."""
    return AnthropicRuntime(
        api_key=context.credential,
        base_url=context.base_url,
        model=context.model,
    )


class BaseAgent(ABC):
    """A plugin with a single operation: ``execute(context) -> result``.

    There is no cancellation primitive. ``descriptor.max_turns`` bounds the
    number of model round-trips a run may take.
    """

    def __init__(
        self,
        descriptor: AgentDescriptor,
        runtime_factory: RuntimeFactory | None = None,
    ):
        self.descriptor = descriptor
        self._runtime_factory = runtime_factory or default_runtime_factory

    @property
    def agent_id(self) -> str:
        return self.descriptor.id

    @abstractmethod
    async def execute(self, context: ExecutionContext) -> ExecutionResult:
        """Run the agent. Must return a result rather than raise."""
        ...


class PromptAgent(BaseAgent):
    """Template for agents that differ only in prompt, tools and extraction.

    Subclasses override the hooks below; :meth:`execute` wires them into one
    :class:`ExecutionSession` over a runtime created by the injected factory.
    """

    system_prompt: str = "You are a helpful assistant."
    milestones: Sequence[str] = ()
    milestone_patterns: Mapping[str, Sequence[str]] = {}
    collect_json: bool = False

    def __init__(
        self,
        descriptor: AgentDescriptor,
        runtime_factory: RuntimeFactory | None = None,
        transcript: Transcript | None = None,
    ):
        super().__init__(descriptor, runtime_factory)
        self._transcript = transcript or Transcript()

    # Hooks

    def validate_input(self, parameters: dict[str, Any]) -> str | None:
        """Return an error message when *parameters* are unusable."""
        return None

    def get_system_prompt(self, parameters: dict[str, Any]) -> str:
        return self.system_prompt

    def build_prompt(self, context: ExecutionContext) -> str:
        return context.prompt

    def get_tools(self, context: ExecutionContext) -> ToolSet:
        return ToolSet()

    def extractors(self) -> Sequence[PatternExtractor]:
        return ()

    # Execution

    async def execute(self, context: ExecutionContext) -> ExecutionResult:
        try:
            problem = self.validate_input(context.parameters)
        except Exception as e:
            logger.error("Agent %s input validation raised: %s", self.agent_id, e, exc_info=True)
            problem = str(e) or e.__class__.__name__
        if problem:
            return await self._reject(context, f"Invalid input: {problem}")

        try:
            runtime = self._runtime_factory(context)
        except ValueError as e:
            return await self._reject(context, str(e))

        try:
            prompt = self.build_prompt(context)
            system = self.get_system_prompt(context.parameters)
            tools = self.get_tools(context)
            extractors = self.extractors()
        except Exception as e:
            logger.error("Agent %s setup failed: %s", self.agent_id, e, exc_info=True)
            return await self._reject(context, f"Agent setup failed: {e}")

        if self.milestones and PROGRESS_TOOL_NAME not in tools:
            tools.add(progress_tool(self.milestones))

        model = context.model or self.descriptor.default_model
        session = ExecutionSession(
            context.task_id,
            agent_name=self.descriptor.name,
            model=model,
            extractors=extractors,
            collect_json=self.collect_json,
            milestones=MilestoneTracker(self.milestones, self.milestone_patterns),
            sink=context.log_sink,
            transcript=self._transcript,
        )
        logger.info(
            "Agent %s executing task %s (max_turns=%s)",
            self.agent_id,
            context.task_id,
            self.descriptor.max_turns,
        )
        stream = runtime.run(
            prompt,
            system=system,
            tools=tools,
            max_turns=self.descriptor.max_turns,
            model=model,
        )
        return await session.run(stream)

    async def _reject(self, context: ExecutionContext, message: str) -> ExecutionResult:
        logger.warning("Agent %s rejected task %s: %s", self.agent_id, context.task_id, message)
        entry = LogEntry(
            id=str(uuid.uuid4()),
            timestamp=datetime.now(timezone.utc),
            type=LogEntryType.ERROR,
            message=message,
        )
        if context.log_sink is not None:
            try:
                await context.log_sink(entry)
            except Exception as e:
                logger.error("Failed to persist log entry for task %s: %s", context.task_id, e)
        return ExecutionResult(
            success=False,
            error=message,
            data={"errors": [message]},
            logs=(entry,),
        )
