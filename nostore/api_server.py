"""
Nostore File Server

FastAPI server for per-identity file storage. Anyone can read; only the
holder of a Nostr key can write, and only to the path named after that key.

Endpoints:
- OPTIONS /{path} - CORS preflight
- GET /health - Health check
- GET /{path} - Download a stored file
- PUT /{pubkey} - Upload a file (requires "Authorization: Nostr <base64 event>")

Author: Nostore Team
License: MIT
"""

import logging
import os
import sys
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

import uvicorn
from fastapi import APIRouter, FastAPI, Request, status
from fastapi.responses import PlainTextResponse, Response
from loguru import logger
from pydantic import BaseModel, Field
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from nostore import __version__
from nostore.backends.local import LocalBackend
from nostore.core.handlers import ReadHandler, WriteHandler


# =============================================================================
# Configuration
# =============================================================================

class ServerConfig(BaseModel):
    """API server configuration."""

    host: str = Field(
        default="127.0.0.1",
        description="Server host (use 0.0.0.0 for Docker/cloud, set via NOSTORE_API_HOST env var)"
    )
    port: int = Field(default=8080, description="Server port")
    workers: int = Field(default=1, description="Number of worker processes")
    reload: bool = Field(default=False, description="Auto-reload on code changes")

    # Storage configuration
    storage_dir: Path = Field(
        default=Path("./data"),
        description="Root directory holding every stored file"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Minimum log level")
    log_file: Optional[Path] = Field(
        default=None,
        description="Optional rotating log file"
    )

    @classmethod
    def from_env(cls) -> "ServerConfig":
        """Build a configuration from environment variables."""
        log_file = os.getenv("LOG_FILE")
        return cls(
            host=os.getenv("NOSTORE_API_HOST", "127.0.0.1"),
            port=int(os.getenv("NOSTORE_API_PORT", "8080")),
            workers=int(os.getenv("WORKERS", "1")),
            reload=os.getenv("RELOAD", "false").lower() == "true",
            storage_dir=Path(os.getenv("STORAGE_DIR", "./data")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            log_file=Path(log_file) if log_file else None,
        )


CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, PUT, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}


# =============================================================================
# Application State
# =============================================================================

class AppState:
    """Application state."""

    def __init__(self, config: ServerConfig):
        self.config = config
        self.backend: Optional[LocalBackend] = None
        self.read_handler: Optional[ReadHandler] = None
        self.write_handler: Optional[WriteHandler] = None

    async def initialize(self):
        """Initialize storage and handlers."""
        self.backend = LocalBackend(self.config.storage_dir)
        self.read_handler = ReadHandler(self.backend)
        self.write_handler = WriteHandler(self.backend)

        logger.info("✅ Nostore storage initialized")
        logger.info("   Storage dir: {}", self.config.storage_dir)

    async def shutdown(self):
        """Cleanup resources."""
        logger.info("✅ Nostore server shutdown complete")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan."""
    # Startup
    await app.state.nostore.initialize()

    yield

    # Shutdown
    await app.state.nostore.shutdown()


# =============================================================================
# Middleware & Error Rendering
# =============================================================================

class CORSHeadersMiddleware(BaseHTTPMiddleware):
    """Add the fixed CORS headers to every response"""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        for name, value in CORS_HEADERS.items():
            response.headers[name] = value
        return response


async def plain_text_http_exception(request: Request, exc: StarletteHTTPException):
    """Render HTTP errors as plain text bodies."""
    return PlainTextResponse(str(exc.detail), status_code=exc.status_code, headers=exc.headers)


# =============================================================================
# Routes
# =============================================================================

router = APIRouter()


@router.get("/health")
async def health_check(request: Request):
    """Health check endpoint."""
    state: AppState = request.app.state.nostore
    return {
        "status": "healthy",
        "service": "nostore",
        "version": __version__,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "storage_initialized": state.backend is not None,
    }


@router.options("/{path:path}")
async def preflight(path: str):
    """Answer CORS preflight requests."""
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{path:path}")
async def download_file(path: str, request: Request):
    """Return a stored file. No authentication."""
    state: AppState = request.app.state.nostore
    return await state.read_handler.handle(request.url.path)


@router.put("/{path:path}")
async def upload_file(path: str, request: Request):
    """
    Store the request body at the request path.

    The Authorization header must carry a signed Nostr event whose pubkey
    is the single path segment.
    """
    state: AppState = request.app.state.nostore
    return await state.write_handler.handle(
        request.url.path,
        request.headers.get("authorization"),
        request.stream(),
    )


# =============================================================================
# FastAPI Application
# =============================================================================

def create_app(config: Optional[ServerConfig] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        config: Server configuration (read from the environment if omitted)
    """
    app = FastAPI(
        title="Nostore File API",
        description="Per-identity file storage authenticated by signed Nostr events",
        version=__version__,
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.nostore = AppState(config or ServerConfig.from_env())

    app.add_middleware(CORSHeadersMiddleware)
    app.add_exception_handler(StarletteHTTPException, plain_text_http_exception)
    app.include_router(router)

    return app


app = create_app()


# =============================================================================
# Main Entry Point
# =============================================================================

def configure_logging(config: ServerConfig):
    """Set up loguru sinks and the level of the standard library loggers."""
    logger.remove()
    logger.add(sys.stderr, level=config.log_level)
    if config.log_file:
        logger.add(
            str(config.log_file),
            rotation="1 day",
            retention="30 days",
            level=config.log_level,
        )

    logging.basicConfig(
        level=getattr(logging, config.log_level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
    )


def main():
    """Run API server."""
    config = ServerConfig.from_env()
    configure_logging(config)

    logger.info("🚀 Starting Nostore server on {}:{}", config.host, config.port)
    logger.info("   Storage dir: {}", config.storage_dir)
    logger.info("   Reload: {}", config.reload)
    logger.info("   Workers: {}", config.workers)

    uvicorn.run(
        "nostore.api_server:app",
        host=config.host,
        port=config.port,
        reload=config.reload,
        workers=config.workers if not config.reload else 1,
        log_level=config.log_level.lower(),
    )


if __name__ == "__main__":
    main()
