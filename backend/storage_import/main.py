"""FastAPI application entry point."""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from storage_import.api.v1 import storage
from storage_import.core.config import settings
from storage_import.core.logging import get_logger, setup_logging
from storage_import.core.tracing import setup_tracing
from storage_import.db.session import init_models
from storage_import.pipeline.errors import PipelineError

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(
        "DEBUG" if settings.APP_ENV == "development" else settings.LOG_LEVEL,
        json_logs=settings.LOG_JSON,
    )
    tracing = setup_tracing()
    # Alembic owns the schema outside development
    if settings.APP_ENV == "development":
        await init_models()
    logger.info("Storage import API starting", env=settings.APP_ENV, tracing=tracing)
    yield
    logger.info("Storage import API shutting down")


app = FastAPI(
    title="Storage Import API",
    description="Imports cloud-storage files into deal analysis pipelines",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(PipelineError)
async def pipeline_error_handler(request: Request, exc: PipelineError) -> JSONResponse:
    """Pipeline errors a route did not map itself, e.g. a failed record write."""
    error = storage.to_http_error(exc)
    logger.error("Unhandled pipeline error", path=request.url.path, code=exc.code, error=exc.message)
    return JSONResponse(status_code=error.status_code, content={"detail": error.detail})


API_PREFIX = "/api/v1"
app.include_router(storage.router, prefix=API_PREFIX)


@app.get("/health", tags=["Health"])
async def health_check() -> dict[str, str]:
    return {"status": "ok", "env": settings.APP_ENV}
