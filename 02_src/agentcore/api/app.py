"""FastAPI application setup."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ..app import Application
from .routes import agents, control, logs, run


def create_fastapi_app(application: Application | None = None) -> FastAPI:
    """Create and configure FastAPI application around *application*."""
    application = application or Application()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Manage application lifespan."""
        await application.start()
        yield
        await application.stop()

    fastapi_app = FastAPI(
        title="Agent Runner API",
        description="Runs tool-using LLM agents and serves their timelines",
        version="0.1.0",
        lifespan=lifespan,
    )
    fastapi_app.state.application = application

    # Enable CORS
    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000", "http://localhost:5173"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @fastapi_app.get("/healthz")
    async def healthz() -> dict:
        """Liveness probe."""
        return {"status": "ok", "agents": application.registry.agent_count}

    # Include routers
    fastapi_app.include_router(run.create_run_router(application))
    fastapi_app.include_router(agents.create_agents_router(application))
    fastapi_app.include_router(logs.create_logs_router(application))
    fastapi_app.include_router(control.create_control_router(application))

    return fastapi_app
