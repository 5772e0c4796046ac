"""
Hello route: reports whether the database answers a probe query.
"""

from fastapi import APIRouter, Depends

from hello_db.healthcheck import HealthChecker, to_response
from hello_db.models import ErrorResponse, HelloResponse
from hello_db.utils.dependencies import get_health_checker

hello_router = APIRouter(prefix='/Prod', tags=['Hello'])


@hello_router.get(
    '/hello',
    response_model=HelloResponse | ErrorResponse,
    responses={200: {'description': 'Probe outcome; failures carry an error field'}},
)
async def hello(checker: HealthChecker = Depends(get_health_checker)):
    """Run the database probe and report its outcome."""
    result = await checker.check_health()
    return to_response(result)
