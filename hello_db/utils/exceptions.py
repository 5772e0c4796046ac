"""
Custom exceptions for the hello-db service.
"""


class PoolError(Exception):
    """Raised when a connection cannot be borrowed from the database pool."""

    pass


class PoolExhaustedError(PoolError):
    """Raised when no pooled connection became free within the pool timeout."""

    pass


class PoolNotInitializedError(RuntimeError):
    """Raised when the database pool is used before it was initialized."""

    pass


class PoolAlreadyInitializedError(RuntimeError):
    """Raised when the database pool is initialized a second time."""

    pass
