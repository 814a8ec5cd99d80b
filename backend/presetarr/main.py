"""
Main FastAPI application for Presetarr.
"""
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from loguru import logger

from presetarr import __version__
from presetarr.admin_tree import AdminCategory, build_default_tree
from presetarr.config import settings
from presetarr.database import AsyncSessionLocal, close_db, init_db
from presetarr.middleware.correlation import CorrelationIdMiddleware
from presetarr.services.install import install_site
from presetarr.utils.locks import AdvisoryLocks
from presetarr.utils.logger import setup_logger
from presetarr.api import presets, status


def validate_secrets():
    """
    Check the encryption key used for sensitive setting values.
    Logs warnings for missing/weak keys but allows auto-generation.
    """
    enc_env = os.getenv("CONFIG_ENCRYPTION_KEY")
    enc_file = settings.data_dir / ".encryption_key"

    if not enc_env and not enc_file.exists():
        logger.info("No encryption key configured - auto-generating secure key")
    elif enc_env and len(enc_env) < 32:
        logger.warning(f"CONFIG_ENCRYPTION_KEY appears weak ({len(enc_env)} chars)")

    # Verify data directory is writable (needed for auto-generated keys)
    data_dir = settings.data_dir
    if not data_dir.exists():
        try:
            data_dir.mkdir(parents=True, exist_ok=True)
            logger.info(f"Created {data_dir} directory for persistent storage")
        except PermissionError:
            logger.error(f"Cannot create {data_dir} - auto-generated secrets will be lost on restart!")
    elif not os.access(data_dir, os.W_OK):
        logger.error(f"{data_dir} is not writable - auto-generated secrets will be lost on restart!")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan context manager."""
    # Startup
    setup_logger()
    logger.info("Starting Presetarr...")

    validate_secrets()

    await init_db()

    async with AsyncSessionLocal() as db:
        await install_site(
            db,
            seed_presets=settings.seed_default_presets,
            default_preset=settings.default_preset,
            locks=app.state.locks,
            tree=app.state.admin_tree,
        )

    logger.info(f"Presetarr {__version__} started for {settings.site_url} (release {settings.release})")

    yield

    # Shutdown
    logger.info("Shutting down Presetarr...")
    await close_db()
    logger.info("Presetarr shut down complete")


def create_app(admin_tree: Optional[AdminCategory] = None, use_lifespan: bool = True) -> FastAPI:
    """
    Build the application.

    Args:
        admin_tree: Declared admin tree of the site, the stock tree when omitted
        use_lifespan: Run database setup and seeding on startup
    """
    application = FastAPI(
        title="Presetarr",
        description="Configuration presets: snapshot, diff, apply and roll back site settings",
        version=__version__,
        lifespan=lifespan if use_lifespan else None,
    )

    application.state.admin_tree = admin_tree or build_default_tree()
    application.state.locks = AdvisoryLocks(timeout=settings.lock_timeout_seconds)

    # Correlation ID middleware (first, to capture all requests)
    application.add_middleware(CorrelationIdMiddleware)

    application.add_middleware(
        CORSMiddleware,
        allow_origins=[
            f"http://localhost:{settings.port}",
            f"http://127.0.0.1:{settings.port}",
        ],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    application.include_router(status.router)
    application.include_router(presets.router)
    return application


app = create_app()


def run():
    """Serve the application with uvicorn."""
    import uvicorn

    uvicorn.run(
        "presetarr.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )


if __name__ == "__main__":
    run()
