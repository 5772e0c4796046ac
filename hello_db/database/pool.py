"""
Database connection pool manager.

The engine (and therefore its connection pool) is created exactly once per
`DatabasePool` instance. The application owns a single instance and hands it
to request handlers through `app.state`, so there is no ambient global pool.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

from sqlalchemy import URL, Connection, Engine, create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.exc import ArgumentError, SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.pool import QueuePool

from hello_db.settings import Settings
from hello_db.settings import settings as default_settings
from hello_db.utils.exceptions import (
    PoolAlreadyInitializedError,
    PoolError,
    PoolExhaustedError,
    PoolNotInitializedError,
)

logger = logging.getLogger(__name__)


def mask_database_url(database_url: str) -> str:
    """Render a connection string with its password hidden, for logging."""
    try:
        return make_url(database_url).render_as_string(hide_password=True)
    except (ArgumentError, ValueError):
        return '<unparseable database url>'


def resolve_database_url(database_url: str) -> URL:
    """Parse a connection string, pinning bare `postgresql://` to psycopg2.

    Newer SQLAlchemy releases default the bare scheme to psycopg 3, which is
    not the driver this service ships with.
    """
    url = make_url(database_url)
    if url.drivername == 'postgresql':
        url = url.set(drivername='postgresql+psycopg2')
    return url


class DatabasePool:
    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or default_settings
        self._engine: Optional[Engine] = None
        self._init_lock = threading.Lock()

    @property
    def is_initialized(self) -> bool:
        return self._engine is not None

    def initialize(self, database_url: Optional[str] = None) -> Engine:
        """Create the shared engine and its bounded connection pool.

        A missing connection string or an engine that cannot be built is a
        startup failure: it is logged and the process exits. Initializing twice
        raises PoolAlreadyInitializedError and keeps the existing engine.
        """
        if database_url is None:
            database_url = self.settings.DATABASE_URL

        if not database_url:
            logger.error('DATABASE_URL is not set')
            raise SystemExit(1)

        with self._init_lock:
            if self._engine is not None:
                raise PoolAlreadyInitializedError(
                    'The database pool has already been initialized'
                )

            logger.info(f'DATABASE_URL: {mask_database_url(database_url)}')
            try:
                url = resolve_database_url(database_url)
                engine = create_engine(
                    url,
                    poolclass=QueuePool,
                    pool_size=self.settings.DATABASE_POOL_SIZE,
                    max_overflow=self.settings.DATABASE_MAX_OVERFLOW,
                    pool_timeout=self.settings.DATABASE_POOL_TIMEOUT,
                    pool_recycle=self.settings.DATABASE_POOL_RECYCLE,
                    pool_pre_ping=self.settings.DATABASE_POOL_PRE_PING,
                    connect_args=self._connect_args(url),
                )
            except (ArgumentError, ValueError, ImportError, TypeError) as e:
                logger.error(f'Failed to create the database connection pool: {e}')
                raise SystemExit(1) from e

            self._engine = engine
            logger.info(
                f'Database pool initialized (max size {self.settings.DATABASE_POOL_SIZE})'
            )
            return engine

    def _connect_args(self, url: URL) -> Dict[str, Any]:
        # Only libpq-based drivers understand connect_timeout
        if url.get_backend_name() == 'postgresql':
            return {'connect_timeout': self.settings.DATABASE_CONNECT_TIMEOUT}
        return {}

    def get_pool(self) -> Engine:
        if self._engine is None:
            raise PoolNotInitializedError('The database pool must be initialized')
        return self._engine

    @contextmanager
    def acquire_connection(self) -> Iterator[Connection]:
        """Borrow a pooled connection for the duration of the block.

        Blocks until a connection is free or the pool timeout elapses. The
        connection goes back to the pool when the block exits, whatever the
        outcome.
        """
        engine = self.get_pool()
        try:
            conn = engine.connect()
        except PoolTimeoutError as e:
            raise PoolExhaustedError(
                f'No database connection available in the pool: {e}'
            ) from e
        except SQLAlchemyError as e:
            raise PoolError(
                f'Failed to get a database connection from the pool: {e}'
            ) from e

        with conn:
            yield conn

    def status(self) -> Dict[str, int]:
        """Get current database connection pool status."""
        if self._engine is None or not isinstance(self._engine.pool, QueuePool):
            return {}

        pool = self._engine.pool
        return {
            'pool_size': pool.size(),
            'checked_in': pool.checkedin(),
            'checked_out': pool.checkedout(),
            'overflow': pool.overflow(),
            'total_connections': pool.checkedin() + pool.checkedout(),
            'available_connections': pool.checkedin(),
        }

    def dispose(self) -> None:
        with self._init_lock:
            if self._engine is None:
                return
            self._engine.dispose()
            self._engine = None
            logger.info('Database pool disposed')
