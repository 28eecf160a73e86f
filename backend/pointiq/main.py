from contextlib import asynccontextmanager
import logging
from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from . import __version__, db
from .routers import live, matches
from .config import Settings, load_settings
from .exceptions import DomainException, ProblemDetail
from .services import MatchTracker
from .storage import (
    LocalPointStore,
    RemoteSyncWorker,
    SupabasePointClient,
    SyncingPointStore,
)

logger = logging.getLogger(__name__)


def build_point_store(settings: Settings) -> SyncingPointStore:
    """Wire the local log and, when configured, the Supabase copy."""

    local = LocalPointStore(settings.points_file)
    remote = None
    if settings.remote_enabled:
        remote = SupabasePointClient(
            settings.supabase_url,
            settings.supabase_key,
            table=settings.supabase_table,
            timeout=settings.remote_timeout,
        )
        logger.info("Remote sync enabled (table=%s)", settings.supabase_table)
    elif settings.supabase_url or settings.supabase_key:
        logger.warning("Supabase settings look invalid; running local-only")
    else:
        logger.info("Supabase not configured; running local-only")
    return SyncingPointStore(
        local, remote, RemoteSyncWorker(maxsize=settings.sync_queue_size)
    )


def create_app(
    settings: Optional[Settings] = None,
    *,
    point_store: Optional[SyncingPointStore] = None,
) -> FastAPI:
    settings = settings or load_settings()
    store = point_store or build_point_store(settings)
    tracker = MatchTracker(store, auto_advance_games=settings.auto_advance_games)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        tracker.restore()
        yield
        await store.worker.drain()
        await store.worker.aclose()
        if isinstance(store.remote, SupabasePointClient):
            await store.remote.aclose()
        await db.dispose_engine()

    app = FastAPI(
        title="PointIQ API",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.point_store = store
    app.state.tracker = tracker

    logger.info("API_PREFIX=%r", settings.api_prefix)
    logger.info("Point history file: %s", settings.points_file)

    app.include_router(live.router, prefix=settings.api_prefix)
    app.include_router(matches.router, prefix=settings.api_prefix)

    @app.get("/healthz", tags=["health"])  # Unprefixed for reverse proxy / uptime checks
    def root_healthz():
        return {"status": "ok", "remoteSync": store.remote_enabled}

    app.add_exception_handler(DomainException, domain_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
    return app


# -----------------------------------------------------------------------------
# Error handling
# -----------------------------------------------------------------------------
async def domain_exception_handler(request: Request, exc: DomainException) -> JSONResponse:
    problem = ProblemDetail(
        type=exc.type,
        title=exc.title,
        detail=exc.detail,
        status=exc.status_code,
        code=exc.code,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=problem.model_dump(),
        media_type="application/problem+json",
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    code = getattr(exc, "code", f"http_{exc.status_code}")
    problem = ProblemDetail(
        title=detail,
        detail=detail,
        status=exc.status_code,
        code=code,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=problem.model_dump(),
        media_type="application/problem+json",
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled exception", exc_info=(type(exc), exc, exc.__traceback__))
    problem = ProblemDetail(
        title="Internal Server Error",
        status=500,
        detail=str(exc),
        code="internal_server_error",
    )
    return JSONResponse(
        status_code=500,
        content=problem.model_dump(),
        media_type="application/problem+json",
    )


app = create_app()
