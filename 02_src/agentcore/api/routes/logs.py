"""Timeline API routes: polling and Server-Sent Events."""

from fastapi import APIRouter, HTTPException, Query, Request
from fastapi.responses import StreamingResponse

from ...app import LOG_SOURCES, Application
from ...logging_config import get_logger
from ...parsing import LogSourceError

logger = get_logger(__name__)


def create_logs_router(app: Application) -> APIRouter:
    """Create logs router."""
    router = APIRouter(prefix="/agent", tags=["logs"])

    @router.get("/logs")
    async def get_logs(
        task_id: str | None = Query(None, alias="taskId"),
        source: str = Query("auto", description="auto | raw | structured"),
    ) -> dict:
        """Full current timeline of a task as LogBlocks."""
        if source not in LOG_SOURCES:
            raise HTTPException(
                status_code=400,
                detail=f"source must be one of {', '.join(LOG_SOURCES)}",
            )
        if not task_id and source != "raw":
            raise HTTPException(status_code=400, detail="taskId is required unless source=raw")

        try:
            blocks, used = await app.get_log_blocks(task_id, source)
        except LogSourceError as e:
            logger.error("Error reading raw logs for task %s: %s", task_id, e)
            raise HTTPException(status_code=500, detail=str(e))

        return {"logs": [block.to_dict() for block in blocks], "source": used}

    @router.get("/stream")
    async def stream_logs(
        request: Request,
        task_id: str | None = Query(None, alias="taskId"),
    ) -> StreamingResponse:
        """Replay then live-push a task's LogEntries as text/event-stream."""
        if not task_id:
            raise HTTPException(status_code=400, detail="taskId is required")
        if await app.storage.get_task(task_id) is None:
            raise HTTPException(status_code=404, detail=f"Task not found: {task_id}")

        return StreamingResponse(
            app.streamer.stream(task_id, request.is_disconnected),
            media_type="text/event-stream",
            headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
        )

    return router
