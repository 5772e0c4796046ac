"""
Health check result and response models.
"""

from enum import StrEnum
from typing import Dict, Optional

from pydantic import BaseModel

HELLO_MESSAGE = 'Hello World with DB!'


class HealthStatus(StrEnum):
    SUCCESS = 'success'
    FAILURE = 'failure'
    TIMEOUT = 'timeout'


class HealthResult(BaseModel):
    """Outcome of one probe; built per request and never persisted."""

    status: HealthStatus
    message: Optional[str] = None

    @classmethod
    def success(cls) -> 'HealthResult':
        return cls(status=HealthStatus.SUCCESS)

    @classmethod
    def failure(cls, message: str) -> 'HealthResult':
        return cls(status=HealthStatus.FAILURE, message=message)

    @classmethod
    def timed_out(cls, message: str) -> 'HealthResult':
        return cls(status=HealthStatus.TIMEOUT, message=message)

    @property
    def ok(self) -> bool:
        return self.status == HealthStatus.SUCCESS

    def to_body(self) -> Dict[str, str]:
        if self.ok:
            return {'message': HELLO_MESSAGE}
        return {'error': self.message or f'DB check {self.status.value}'}


class HelloResponse(BaseModel):
    message: str


class ErrorResponse(BaseModel):
    error: str
