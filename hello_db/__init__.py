"""
hello-db: a database-backed hello endpoint for standalone and Lambda deployments.
"""

__version__ = '0.1.0'
