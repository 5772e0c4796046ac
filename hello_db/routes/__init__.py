"""
Routes package for the hello-db service.
"""

from .hello import hello_router

__all__ = ['hello_router']
