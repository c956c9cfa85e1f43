"""FastAPI application entrypoint.

``create_app`` wires settings, the Spotify lyrics client, middleware and
routers together. ``run`` is the console entry point: it configures logging,
refuses to start without credentials and serves with uvicorn, either on a
socket inherited through systemd-style socket activation or on
``host:port``.
"""

from __future__ import annotations

import logging
import os
import sys
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from . import PROJECT_NAME, __version__
from .api.lyrics import router as lyrics_router
from .api.root import router as root_router
from .errors import register_error_handlers
from .logging_config import configure_logging
from .middleware import RateLimitMiddleware, RequestIDMiddleware
from .settings import Settings, get_settings
from .spotify import LyricsClient, NoCredentialsConfigured

logger = logging.getLogger(__name__)

# First fd handed over by systemd / systemfd socket activation
SD_LISTEN_FDS_START = 3


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await app.state.lyrics_client.aclose()
    logger.info("lyrics_relay.shutdown")


def create_app(
    settings: Settings | None = None,
    lyrics_client: LyricsClient | None = None,
) -> FastAPI:
    """Build the ASGI app.

    Raises:
        NoCredentialsConfigured: ``settings.cookies`` is empty.
    """
    settings = settings or get_settings()
    if lyrics_client is None:
        lyrics_client = LyricsClient.from_settings(settings)

    if not settings.auth_enabled:
        logger.warning("No API key provided, this means anyone can use your API")

    app = FastAPI(
        title=PROJECT_NAME,
        version=__version__,
        description="Time-synced Spotify lyrics through a pool of sp_dc cookies.",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.lyrics_client = lyrics_client

    # Added last runs first: request ids must exist before rate limiting logs
    app.add_middleware(
        RateLimitMiddleware,
        max_requests=settings.rate_limit_per_min,
        window_seconds=settings.rate_limit_window_s,
    )
    app.add_middleware(RequestIDMiddleware)

    register_error_handlers(app)

    app.include_router(root_router)
    app.include_router(lyrics_router)

    logger.info(
        "lyrics_relay.app_created",
        extra={
            "meta": {
                "credentials": lyrics_client.credential_count,
                "auth_enabled": settings.auth_enabled,
                "lock_scope": settings.lock_scope,
            }
        },
    )
    return app


def _inherited_fd() -> int | None:
    """Return the activated socket fd when this process owns one."""
    try:
        count = int(os.getenv("LISTEN_FDS", "0"))
    except ValueError:
        return None
    pid = os.getenv("LISTEN_PID")
    if count < 1 or (pid and pid != str(os.getpid())):
        return None
    return SD_LISTEN_FDS_START


def run() -> None:
    configure_logging()
    try:
        settings = get_settings()
        app = create_app(settings)
    except NoCredentialsConfigured as e:
        logger.critical("lyrics_relay.startup_failed", extra={"meta": {"error": str(e)}})
        sys.exit(1)

    fd = _inherited_fd()
    if fd is not None:
        logger.info("Listening on inherited socket", extra={"meta": {"fd": fd}})
        uvicorn.run(app, fd=fd, log_config=None)
    else:
        logger.info(
            "Listening on %s:%s",
            settings.host,
            settings.port,
            extra={"meta": {"host": settings.host, "port": settings.port}},
        )
        uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)


if __name__ == "__main__":
    run()
