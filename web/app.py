"""FastAPI application factory: routers, middleware, state wiring."""

import logging
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import Config
from upstream.client import UpstreamClient, UpstreamClientProtocol
from version import __version__
from web.ads import AdScriptRegistry
from web.middleware import SecurityHeadersMiddleware, RequestLogMiddleware
from web.routers.ads import router as ads_router
from web.routers.catalog import router as catalog_router
from web.routers.health import router as health_router
from web.routers.videos import router as videos_router
from web.shared import limiter, configure_rate_limit

logger = logging.getLogger(__name__)


class SPAStaticFiles(StaticFiles):
    """Serve the built client; unknown non-API paths fall back to index.html."""

    async def get_response(self, path: str, scope):
        try:
            return await super().get_response(path, scope)
        except StarletteHTTPException as e:
            if e.status_code != 404 or path.startswith("api/"):
                raise
            return await super().get_response("index.html", scope)


async def rate_limit_handler(request: Request, exc: RateLimitExceeded):
    return JSONResponse(
        {"message": "Too many requests. Please wait a moment and try again."},
        status_code=429,
    )


def create_app(config: Config, upstream: UpstreamClientProtocol | None = None) -> FastAPI:
    """Build a fully wired app. Tests pass a mock *upstream*."""
    app = FastAPI(title="TubeGate", version=__version__)
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_handler)
    configure_rate_limit(config.upstream.rate_limit)

    # State
    state = app.state
    state.upstream_config = config.upstream
    state.upstream = upstream if upstream is not None else UpstreamClient.from_config(config.upstream)
    state.ad_registry = AdScriptRegistry.from_config(config.ads)

    # Routers
    app.include_router(health_router)
    app.include_router(videos_router)
    app.include_router(catalog_router)
    app.include_router(ads_router)

    # Middleware (last added = first executed)
    app.add_middleware(SecurityHeadersMiddleware, script_hosts=state.ad_registry.script_hosts())
    app.add_middleware(RequestLogMiddleware)

    # Static client bundle, mounted last so API routes win
    static_dir = config.web.static_dir
    if static_dir:
        if Path(static_dir).is_dir():
            app.mount("/", SPAStaticFiles(directory=static_dir, html=True), name="client")
            logger.info("Serving client bundle from %s", static_dir)
        else:
            logger.warning("web.static_dir %r does not exist, serving API only", static_dir)

    return app
