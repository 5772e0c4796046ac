"""
Crash reporting: Sentry plus logging of uncaught exceptions.
"""

import logging
import sys
import threading

import sentry_sdk
from sentry_sdk.integrations.asyncio import AsyncioIntegration
from sentry_sdk.integrations.fastapi import FastApiIntegration

from hello_db.settings import Settings

logger = logging.getLogger(__name__)

_hooks_installed = False


def init_sentry(settings: Settings) -> bool:
    """Initialize Sentry if a DSN is configured. Returns whether it was enabled."""
    if not settings.API_SENTRY_DSN:
        logger.warning(
            'API_SENTRY_DSN not found in environment variables. Sentry is disabled.'
        )
        return False

    sentry_sdk.init(
        dsn=settings.API_SENTRY_DSN,
        integrations=[
            FastApiIntegration(),
            AsyncioIntegration(),
        ],
        traces_sample_rate=0.0,
        profiles_sample_rate=0.0,
        environment=settings.ENVIRONMENT,
    )
    logger.info('Sentry initialized for backend')
    return True


def install_crash_hooks() -> None:
    """Log uncaught exceptions, in the main thread and in worker threads,
    before handing them to whatever hook was installed previously."""
    global _hooks_installed

    if _hooks_installed:
        return

    previous_excepthook = sys.excepthook
    previous_threading_excepthook = threading.excepthook

    def excepthook(exc_type, exc_value, exc_traceback):
        if not issubclass(exc_type, KeyboardInterrupt):
            logger.error(
                f"Uncaught exception in thread '{threading.current_thread().name}': {exc_value!r}",
                exc_info=(exc_type, exc_value, exc_traceback),
            )
        previous_excepthook(exc_type, exc_value, exc_traceback)

    def threading_excepthook(args):
        name = args.thread.name if args.thread is not None else 'unnamed'
        logger.error(
            f"Uncaught exception in thread '{name}': {args.exc_value!r}",
            exc_info=(args.exc_type, args.exc_value, args.exc_traceback),
        )
        previous_threading_excepthook(args)

    sys.excepthook = excepthook
    threading.excepthook = threading_excepthook
    _hooks_installed = True
