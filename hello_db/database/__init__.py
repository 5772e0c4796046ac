"""
Database package for the hello-db service.
"""

from .pool import DatabasePool, mask_database_url, resolve_database_url

__all__ = ['DatabasePool', 'mask_database_url', 'resolve_database_url']
