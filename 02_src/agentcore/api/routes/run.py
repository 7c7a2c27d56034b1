"""Agent execution API routes."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from fastapi import APIRouter, HTTPException

from ...app import (
    AgentNotFoundError,
    Application,
    MissingCredentialError,
    TaskAlreadyRunningError,
)
from ...logging_config import get_logger
from ...models import ExecutionResult

logger = get_logger(__name__)


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RunRequest(_CamelModel):
    """Request body for POST /run."""

    prompt: str | None = None
    agent_id: str | None = None
    task_id: str | None = None
    parameters: dict[str, Any] = Field(default_factory=dict)


class LogEntryResponse(_CamelModel):
    """Response model for a timeline entry."""

    id: str
    timestamp: datetime
    type: str
    message: str
    data: dict[str, Any] | None = None


class MetadataResponse(_CamelModel):
    duration: int
    tokens_used: int
    cost_usd: float
    tool_calls: dict[str, int]


class RunResponse(_CamelModel):
    """Response model for POST /run."""

    task_id: str
    success: bool
    response: str
    data: dict[str, Any]
    error: str | None = None
    logs: list[LogEntryResponse]
    metadata: MetadataResponse


def to_run_response(task_id: str, result: ExecutionResult) -> RunResponse:
    return RunResponse(
        task_id=task_id,
        success=result.success,
        response=result.response,
        data=result.data,
        error=result.error,
        logs=[
            LogEntryResponse(
                id=entry.id,
                timestamp=entry.timestamp,
                type=entry.type.value,
                message=entry.message,
                data=entry.data,
            )
            for entry in result.logs
        ],
        metadata=MetadataResponse(
            duration=result.metadata.duration_ms,
            tokens_used=result.metadata.tokens_used,
            cost_usd=result.metadata.cost_usd,
            tool_calls=result.metadata.tool_calls,
        ),
    )


def create_run_router(app: Application) -> APIRouter:
    """Create run router."""
    router = APIRouter(tags=["run"])

    @router.post("/run", response_model=RunResponse)
    async def run_agent(request: RunRequest) -> RunResponse:
        """Execute a prompt with a registered agent."""
        if not request.prompt:
            raise HTTPException(status_code=400, detail="prompt is required")
        if not (request.agent_id or app.default_agent_id):
            raise HTTPException(status_code=400, detail="agentId is required")

        try:
            task_id, result = await app.run_task(
                request.prompt,
                agent_id=request.agent_id,
                task_id=request.task_id,
                parameters=request.parameters,
            )
        except AgentNotFoundError as e:
            raise HTTPException(status_code=404, detail=str(e))
        except TaskAlreadyRunningError as e:
            raise HTTPException(status_code=409, detail=str(e))
        except MissingCredentialError as e:
            raise HTTPException(status_code=500, detail=str(e))
        except Exception as e:
            logger.error("Run failed: %s", e, exc_info=True)
            raise HTTPException(status_code=500, detail=str(e))

        return to_run_response(task_id, result)

    return router
