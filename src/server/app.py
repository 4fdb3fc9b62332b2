"""FastAPI application exposing the content store over REST.

Every response uses the same envelope: ``success`` plus either ``data``
or ``message``.  Errors are converted at the boundary by exception
handlers; internal error details only leave the process when the
server runs in development mode.
"""

from __future__ import annotations

import logging
import time
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from sitedash import __version__
from sitedash.config import ServerConfig
from sitedash.content.store import ContentStore
from sitedash.errors import NotFoundError, ValidationError
from sitedash.server.routes import ENDPOINTS, router, timestamp

logger = logging.getLogger(__name__)


def create_app(
    config: ServerConfig | None = None,
    store: ContentStore | None = None,
) -> FastAPI:
    """Build the application around a (possibly shared) content store."""
    config = config or ServerConfig()

    app = FastAPI(title="sitedash", version=__version__)
    app.state.store = store or ContentStore()
    app.state.config = config
    app.state.started_at = time.monotonic()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[config.frontend_url],
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["*"],
        allow_credentials=True,
    )
    app.include_router(router, prefix="/api/components")
    _register_meta_routes(app)
    _register_error_handlers(app, config)
    return app


def _register_meta_routes(app: FastAPI) -> None:
    @app.get("/health")
    async def health(request: Request) -> dict[str, Any]:
        return {
            "status": "OK",
            "message": "Server is running",
            "timestamp": timestamp(),
            "uptime": time.monotonic() - request.app.state.started_at,
        }

    @app.get("/api")
    async def api_info() -> dict[str, Any]:
        return {"name": "sitedash API", "version": __version__, "endpoints": ENDPOINTS}


def _register_error_handlers(app: FastAPI, config: ServerConfig) -> None:
    @app.exception_handler(ValidationError)
    async def _validation(request: Request, exc: ValidationError) -> JSONResponse:
        logger.info("Rejected %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"success": False, "message": str(exc)},
        )

    @app.exception_handler(NotFoundError)
    async def _not_found(request: Request, exc: NotFoundError) -> JSONResponse:
        return _route_not_found(exc)

    @app.exception_handler(StarletteHTTPException)
    async def _http(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        if exc.status_code in (status.HTTP_404_NOT_FOUND, status.HTTP_405_METHOD_NOT_ALLOWED):
            return _route_not_found(NotFoundError(request.url.path))
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "message": str(exc.detail)},
        )

    @app.exception_handler(Exception)
    async def _internal(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Server error on %s %s", request.method, request.url.path)
        content: dict[str, Any] = {"success": False, "message": "Internal server error"}
        if config.is_development:
            content["error"] = str(exc)
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content)


def _route_not_found(exc: NotFoundError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content={"success": False, "message": "Route not found", "path": exc.path},
    )


def run(config: ServerConfig, store: ContentStore | None = None) -> None:
    """Serve the application with uvicorn (blocks)."""
    import uvicorn

    logger.info("Starting server on http://%s:%d", config.host, config.port)
    uvicorn.run(create_app(config, store), host=config.host, port=config.port)
