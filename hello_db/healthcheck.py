"""
Bounded-time database health check.

The probe query is blocking, so it runs on a worker thread owned by the
checker while the event loop only waits for it, up to a fixed deadline.
"""

import asyncio
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Optional

from fastapi import status
from fastapi.responses import JSONResponse
from sqlalchemy import text

from hello_db.database import DatabasePool
from hello_db.models import HealthResult

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10.0
DEFAULT_QUERY = 'SELECT 1'


class HealthChecker:
    """Runs the liveness probe against a DatabasePool.

    A probe that misses the deadline is abandoned rather than awaited. If it
    had not started yet it never runs; if it is stuck in the driver it keeps
    its worker and connection until the driver returns, and is counted in
    `abandoned_probes` until then.
    """

    def __init__(
        self,
        pool: DatabasePool,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        query: str = DEFAULT_QUERY,
        max_workers: Optional[int] = None,
    ):
        self.pool = pool
        self.timeout = timeout
        self.query = query
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers or pool.settings.DATABASE_POOL_SIZE,
            thread_name_prefix='db-probe',
        )
        self._abandoned = 0
        self._abandoned_lock = threading.Lock()

    @property
    def abandoned_probes(self) -> int:
        """Probes that timed out and are still holding a worker."""
        with self._abandoned_lock:
            return self._abandoned

    def _run_probe(self) -> None:
        with self.pool.acquire_connection() as conn:
            conn.execute(text(self.query))

    async def check_health(self) -> HealthResult:
        logger.info('Received /hello request')

        future = self._executor.submit(self._run_probe)
        wrapped = asyncio.wrap_future(future)
        # Only the deadline counts as a timeout; a TimeoutError raised by the
        # driver is a probe failure
        done, _ = await asyncio.wait({wrapped}, timeout=self.timeout)

        if not done:
            # Cancels the probe if it is still queued; a running one finishes on its own
            wrapped.cancel()
            self._track_abandoned(future)
            msg = f'DB check timeout: no response within {self.timeout}s'
            logger.error(
                f'{msg} (abandoned probes: {self.abandoned_probes}, pool: {self.pool.status()})'
            )
            return HealthResult.timed_out(msg)

        error = wrapped.exception()
        if error is not None:
            msg = f'DB error: {error}'
            logger.error(msg)
            return HealthResult.failure(msg)

        logger.info('DB check passed.')
        return HealthResult.success()

    def _track_abandoned(self, future: Future) -> None:
        with self._abandoned_lock:
            self._abandoned += 1
        future.add_done_callback(self._release_abandoned)

    def _release_abandoned(self, future: Future) -> None:
        with self._abandoned_lock:
            self._abandoned -= 1

        if future.cancelled():
            logger.debug('Abandoned DB probe was cancelled before it started')
        elif future.exception() is not None:
            logger.debug(f'Abandoned DB probe finished with: {future.exception()}')
        else:
            logger.debug('Abandoned DB probe finished after its deadline')

    def shutdown(self) -> None:
        # Stuck probes are not waited for; their threads end with the driver call
        self._executor.shutdown(wait=False, cancel_futures=True)


def to_response(result: HealthResult) -> JSONResponse:
    """Every outcome is reported with HTTP 200; the body tells them apart."""
    return JSONResponse(status_code=status.HTTP_200_OK, content=result.to_body())
