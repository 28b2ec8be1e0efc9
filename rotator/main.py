import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from .api import health
from .dependencies import (
    get_journal,
    get_rotation_engine,
    get_rotator_config,
    get_rotator_service,
    get_settings,
    get_task_pool,
)
from .logging_config import setup_logging


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager"""
    settings = get_settings()
    setup_logging(settings)

    logging.info("Log Rotator starting up...")
    logging.info(f"Configuration file: {settings.config_path}")
    logging.info(f"Journal: {settings.journal_path}")

    # Config or engine failures abort startup before the first scan
    config = get_rotator_config()
    logging.info(f"Log root: {config.defaults.discovery.path}")
    get_journal()
    get_rotation_engine()

    rotator_service = get_rotator_service()
    await rotator_service.start_scanning()

    yield

    # Shutdown
    logging.info("Log Rotator shutting down...")
    await rotator_service.stop_scanning()
    await get_task_pool().shutdown(timeout=settings.shutdown_timeout_seconds)
    logging.info("Alle background tasks stoppet")


app = FastAPI(
    title="Log Rotator",
    description="Rotates, compresses and prunes container log trees per namespace",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(health.router)


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "rotator.main:app",
        host=settings.listen_host,
        port=settings.listen_port,
        reload=False,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
