"""Agent-related data models."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .logs import LogEntry

SUPPORTED_SCHEMA_VERSION = 1


class AgentCapability(str, Enum):
    """Capabilities an agent may advertise."""

    WEB_RESEARCH = "web-research"
    CODE_GENERATION = "code-generation"
    CODE_REVIEW = "code-review"
    DATA_ANALYSIS = "data-analysis"
    TASK_EXECUTION = "task-execution"
    FILE_OPERATIONS = "file-operations"
    API_INTEGRATION = "api-integration"


class AgentDescriptor(BaseModel):
    """Validated contents of an agent's ``config.json``."""

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    schema_version: int = Field(SUPPORTED_SCHEMA_VERSION, alias="schemaVersion")
    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    version: str
    description: str = ""
    long_description: str | None = Field(None, alias="longDescription")
    author: str | None = None
    capabilities: tuple[AgentCapability, ...] = ()
    tags: tuple[str, ...] = ()
    max_turns: int = Field(50, alias="maxTurns", ge=1)
    default_model: str | None = Field(None, alias="defaultModel")
    requires_mcp: bool = Field(False, alias="requiresMCP")
    mcp_servers: tuple[str, ...] = Field((), alias="mcpServers")
    module: str = "agent.py"

    @field_validator("schema_version")
    @classmethod
    def _check_schema_version(cls, value: int) -> int:
        if value != SUPPORTED_SCHEMA_VERSION:
            raise ValueError(
                f"unsupported schemaVersion {value} "
                f"(expected {SUPPORTED_SCHEMA_VERSION})"
            )
        return value


LogSink = Callable[[LogEntry], Awaitable[None]]


@dataclass
class ExecutionContext:
    """Everything one agent run needs. Created per invocation."""

    task_id: str
    prompt: str
    credential: str
    parameters: dict[str, Any] = field(default_factory=dict)
    model: str | None = None
    base_url: str | None = None
    log_sink: LogSink | None = None


@dataclass(frozen=True)
class ExecutionMetadata:
    duration_ms: int = 0
    tokens_used: int = 0
    cost_usd: float = 0.0
    tool_calls: dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class ExecutionResult:
    """Final outcome of one agent run."""

    success: bool
    response: str = ""
    data: dict[str, Any] = field(default_factory=dict)
    error: str | None = None
    logs: tuple[LogEntry, ...] = ()
    metadata: ExecutionMetadata = field(default_factory=ExecutionMetadata)
