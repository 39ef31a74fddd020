"""FastAPI application entry point."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import JSONResponse

from analyst_pro.api import router as api_router
from analyst_pro.chains.collaborator import AnthropicCollaborator
from analyst_pro.core.config import get_settings
from analyst_pro.core.logging import get_logger
from analyst_pro.core.sessions import SessionRegistry
from analyst_pro.db.artifact_store import get_artifact_store

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    if not hasattr(app.state, "sessions"):
        app.state.sessions = SessionRegistry(
            store=get_artifact_store(settings),
            collaborator=AnthropicCollaborator(),
            settings=settings,
        )
        logger.info(f"Started with {settings.STORE_BACKEND} store ({settings.DOCGEN_ENV})")
    yield


app = FastAPI(
    title="AnalystPro Doc Engine",
    description="AI-assisted generation of business analysis documents",
    version="0.1.0",
    lifespan=lifespan,
)


@app.get("/health")
async def health_check() -> JSONResponse:
    """Health check endpoint."""
    return JSONResponse(content={"status": "ok"}, status_code=200)


# Include v1 API router
app.include_router(api_router, prefix="/v1", tags=["v1"])
