"""
Utility helpers for the hello-db service.
"""
