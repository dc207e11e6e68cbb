"""FastAPI application wiring for the identity admin service."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response, status
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from psycopg_pool import ConnectionPool, PoolTimeout

from .api.routes import router as v1_router
from .config import APP_NAME, VERSION, Settings, get_settings
from .domain.bootstrap import ensure_bootstrap_admin
from .domain.errors import StoreUnavailable
from .domain.service import AccountService
from .repository import AccountRepository
from .security.rate_limiter import build_rate_limiter

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def open_pool(settings: Settings) -> ConnectionPool:
    """Open the Postgres pool, failing fast when no connection can be made."""
    pool = ConnectionPool(settings.database_url, open=False)
    try:
        pool.open(wait=True, timeout=settings.database_connect_timeout)
    except PoolTimeout as exc:
        pool.close()
        raise StoreUnavailable("could not connect to the account store") from exc
    return pool


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Validate configuration, bootstrap the admin account and share services.

    Any failure here aborts startup so the server never accepts requests
    without a reachable store and an active administrator.
    """
    try:
        settings = get_settings()
    except Exception:
        logger.critical("invalid configuration, refusing to start", exc_info=True)
        raise
    configure_logging(settings.log_level)

    try:
        pool = open_pool(settings)
    except StoreUnavailable:
        logger.critical("account store unreachable, refusing to start", exc_info=True)
        raise

    try:
        repository = AccountRepository(pool)
        repository.ensure_schema()
        ensure_bootstrap_admin(
            repository,
            settings.bootstrap_admin,
            password_rounds=settings.password_hash_rounds,
        )
        app.state.pool = pool
        app.state.repository = repository
        app.state.account_service = AccountService(
            repository, password_rounds=settings.password_hash_rounds
        )
        app.state.token_config = settings.token_config()
        app.state.token_ttl_seconds = settings.jwt_ttl_seconds
        app.state.rate_limiter = build_rate_limiter(settings)
    except Exception:
        logger.critical("startup failed, refusing to start", exc_info=True)
        pool.close()
        raise

    logger.info("%s %s ready", settings.app_name, settings.version)
    try:
        yield
    finally:
        pool.close()


def create_app() -> FastAPI:
    app = FastAPI(title=APP_NAME, version=VERSION, lifespan=lifespan)

    @app.get("/healthz", tags=["health"])
    def healthz(request: Request) -> JSONResponse:
        """Report readiness; 503 when the account store does not answer."""
        try:
            request.app.state.repository.ping()
        except StoreUnavailable:
            return JSONResponse(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                content={"status": "unavailable"},
            )
        return JSONResponse(content={"status": "ok"})

    @app.get("/metrics", include_in_schema=False)
    def metrics() -> Response:
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    app.include_router(v1_router)
    return app


app = create_app()
