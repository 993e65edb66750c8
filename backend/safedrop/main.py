"""
FastAPI application for SafeDrop.

Serves the safes API, the single-page client and its static assets.
"""
import asyncio
from contextlib import asynccontextmanager, suppress
from datetime import datetime
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles

from . import __version__
from .api.safes import router as safes_router
from .config import ServerConfig
from .logging import get_logger
from .vault import Vault

logger = get_logger("main")


async def _sweep_expired_safes(vault: Vault, interval: int):
    """Background task: evict safes whose window elapsed without an unlock."""
    while True:
        await asyncio.sleep(interval)
        try:
            vault.purge_expired()
        except Exception:
            logger.exception("Sweep failed")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    config: ServerConfig = app.state.config
    app.state.sweep_task = None
    if config.sweep_interval:
        logger.info(f"Sweeping expired safes every {config.sweep_interval}s")
        app.state.sweep_task = asyncio.create_task(
            _sweep_expired_safes(app.state.vault, config.sweep_interval)
        )
    logger.info("SafeDrop started")
    yield
    if app.state.sweep_task:
        app.state.sweep_task.cancel()
        with suppress(asyncio.CancelledError):
            await app.state.sweep_task
    logger.info("Shutting down...")


def create_app(config: Optional[ServerConfig] = None, vault: Optional[Vault] = None) -> FastAPI:
    """Create the SafeDrop app. Each app owns one vault for its lifetime."""
    app = FastAPI(
        title="SafeDrop",
        description="Share secrets through links that open a limited number of times",
        version=__version__,
        lifespan=lifespan,
    )
    # An empty Vault is falsy, so compare against None
    app.state.config = config if config is not None else ServerConfig()
    app.state.vault = vault if vault is not None else Vault()

    app.include_router(safes_router)

    @app.get("/health")
    async def health_check(request: Request):
        """Health check endpoint."""
        return {
            "status": "healthy",
            "timestamp": datetime.now().isoformat(),
            "safes": len(request.app.state.vault),
        }

    @app.get("/", include_in_schema=False)
    async def index(request: Request):
        index_file = request.app.state.config.index_file
        if not index_file.is_file():
            raise HTTPException(status_code=404, detail="Not found")
        return FileResponse(index_file)

    static_dir = Path(app.state.config.static_dir)
    if static_dir.is_dir():
        app.mount("/static", StaticFiles(directory=static_dir), name="static")
    else:
        logger.warning(f"Static directory {static_dir} not found, serving API only")

    if not app.state.config.index_file.is_file():
        logger.warning(
            f"No client page at {app.state.config.index_file}, "
            "/ and /safes/{id} will answer 404"
        )

    return app
