"""Agent catalogue API routes."""

from fastapi import APIRouter, Query

from ...app import Application
from ...models import AgentCapability


def create_agents_router(app: Application) -> APIRouter:
    """Create agents router."""
    router = APIRouter(tags=["agents"])

    @router.get("/agents")
    async def list_agents(
        capability: AgentCapability | None = Query(None, description="Filter by capability"),
        tag: str | None = Query(None, description="Filter by tag"),
        name: str | None = Query(None, description="Case-insensitive name substring"),
    ) -> list[dict]:
        """List registered agents, optionally filtered."""
        if capability is None and tag is None and name is None:
            configs = app.registry.list_agents()
        else:
            configs = app.registry.search_agents(capability=capability, tag=tag, name=name)
        return [config.model_dump(mode="json", by_alias=True) for config in configs]

    return router
