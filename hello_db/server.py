"""
FastAPI server implementation for the hello-db service.
"""

import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from hello_db import __version__
from hello_db.database import DatabasePool
from hello_db.healthcheck import HealthChecker
from hello_db.routes import hello_router
from hello_db.settings import Settings
from hello_db.settings import settings as default_settings
from hello_db.utils.crash_reporting import init_sentry, install_crash_hooks

# Native library locations the PostgreSQL driver depends on in Lambda images
RUNTIME_ENV_VARS = ('LD_LIBRARY_PATH', 'PQ_LIB_DIR', 'PQ_INCLUDE_DIR', 'PGSSLMODE')

# Set up logging
logging.basicConfig(
    level=getattr(logging, default_settings.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
)
logger = logging.getLogger(__name__)


def log_runtime_environment() -> None:
    for var in RUNTIME_ENV_VARS:
        value = os.environ.get(var)
        if value:
            logger.info(f'{var} = {value}')
        else:
            logger.debug(f'{var} is not set')


def start_services(app: FastAPI) -> None:
    """Initialize the database pool and health checker onto app.state.

    Exits the process if the pool cannot be built.
    """
    settings: Settings = app.state.settings

    install_crash_hooks()
    logger.info('Starting hello-db service...')
    log_runtime_environment()

    database_pool = DatabasePool(settings)
    database_pool.initialize()

    app.state.database_pool = database_pool
    app.state.health_checker = HealthChecker(
        database_pool,
        timeout=settings.HEALTHCHECK_TIMEOUT_SECONDS,
        query=settings.HEALTHCHECK_QUERY,
        max_workers=settings.HEALTHCHECK_WORKERS,
    )


def stop_services(app: FastAPI) -> None:
    health_checker = getattr(app.state, 'health_checker', None)
    if health_checker is not None:
        health_checker.shutdown()
        app.state.health_checker = None

    database_pool = getattr(app.state, 'database_pool', None)
    if database_pool is not None:
        database_pool.dispose()
        app.state.database_pool = None


@asynccontextmanager
async def lifespan(app: FastAPI):
    start_services(app)
    try:
        yield
    finally:
        stop_services(app)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or default_settings
    init_sentry(settings)

    app = FastAPI(
        title='hello-db',
        description='Hello endpoint backed by a database connectivity check',
        version=__version__,
        lifespan=lifespan,
        # Disable automatic redirect from /path to /path/
        redirect_slashes=False,
    )
    app.state.settings = settings
    app.include_router(hello_router)
    return app


app = create_app()


if __name__ == '__main__':
    import uvicorn

    logger.info('Running as a local server...')
    uvicorn.run(
        'hello_db.server:app',
        host=default_settings.SERVER_HOST,
        port=default_settings.SERVER_PORT,
    )
