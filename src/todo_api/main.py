from __future__ import annotations

import logging
import sys
import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from .exceptions import StorageError, TodoAPIError
from .repositories import Repository, get_repository
from .routers import todos as todos_router
from .settings import Settings, get_settings

logger = logging.getLogger(__name__)
access_logger = logging.getLogger("todo_api.access")

LIVENESS_MESSAGE = "Backend is Live"

openapi_tags = [
    {"name": "health", "description": "Service liveness endpoint."},
    {"name": "todos", "description": "CRUD operations for Todo items stored in MongoDB."},
]


# PUBLIC_INTERFACE
def setup_logging(level: str = "INFO") -> None:
    """
    Configure root logging once for the process: one line per record on stdout.
    """
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )
    for noisy in ("pymongo", "httpx", "httpcore", "uvicorn.access"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Log method, path, status and duration for every request except liveness probes.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        start = time.perf_counter()
        response = await call_next(request)
        if request.url.path == "/":
            return response

        duration_ms = (time.perf_counter() - start) * 1000
        status = response.status_code
        if status >= 500:
            level = logging.ERROR
        elif status >= 400:
            level = logging.WARNING
        else:
            level = logging.INFO
        access_logger.log(level, "%s %s %d %.1fms", request.method, request.url.path, status, duration_ms)
        return response


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Configure logging and build the storage handle on startup, unless one was injected.
    The handle is closed on shutdown. A failed database ping aborts startup.
    """
    settings: Settings = app.state.settings
    setup_logging(settings.log_level)
    if getattr(app.state, "repository", None) is None:
        logger.info("Starting with %s backend", settings.persistence_backend)
        repository = get_repository(settings)
        try:
            repository.ping()
        except StorageError:
            repository.close()
            raise
        app.state.repository = repository

    yield

    logger.info("Closing storage handle")
    app.state.repository.close()


def register_exception_handlers(app: FastAPI) -> None:
    """Translate application errors into ``{"error": message}`` responses."""

    @app.exception_handler(TodoAPIError)
    async def handle_todo_api_error(request: Request, exc: TodoAPIError) -> JSONResponse:
        if isinstance(exc, StorageError):
            logger.error("%s %s: %s (%r)", request.method, request.url.path, exc.message, exc.__cause__)
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})


# PUBLIC_INTERFACE
def create_app(repository: Optional[Repository] = None, settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        repository: Storage handle to serve requests from. When omitted, one is built from
            settings during startup.
        settings: Application settings; loaded from the environment when omitted.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="Todo API",
        description="CRUD API for todo items backed by a MongoDB collection.",
        version="0.1.0",
        openapi_tags=openapi_tags,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.repository = repository

    allow_all = (settings.cors_allow_origins == ["*"]) or (len(settings.cors_allow_origins) == 0)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if allow_all else settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)
    register_exception_handlers(app)

    # PUBLIC_INTERFACE
    @app.get("/", summary="Liveness", tags=["health"])
    def backend_live() -> dict:
        """
        Liveness endpoint.

        Returns:
            A fixed JSON object indicating the backend is up.
        """
        return {"status": LIVENESS_MESSAGE, "backend": settings.persistence_backend}

    app.include_router(todos_router.router)
    return app


app = create_app()
