"""
FastAPI dependencies exposing the objects created by the application lifespan.
"""

from fastapi import Request

from hello_db.healthcheck import HealthChecker


def get_health_checker(request: Request) -> HealthChecker:
    return request.app.state.health_checker
