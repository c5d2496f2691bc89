"""
Result-or-error values returned by the identity gateway
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Generic, Optional, TypeVar

from .constants import ERROR_STATUS, HttpStatus
from .exceptions import OrgAuthError, PartialFailureError

T = TypeVar('T')


@dataclass(frozen=True)
class ErrorInfo:
    """Stable error kind, human message and machine detail"""
    kind: str
    message: str
    detail: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_exception(cls, exc: OrgAuthError) -> 'ErrorInfo':
        detail = {}
        if isinstance(exc, PartialFailureError):
            detail = {'step': exc.step, **exc.detail}
        return cls(kind=exc.error_code, message=exc.message, detail=detail)

    @property
    def status(self) -> int:
        return ERROR_STATUS.get(self.kind, HttpStatus.INTERNAL_SERVER_ERROR)


@dataclass(frozen=True)
class Result(Generic[T]):
    value: Optional[T] = None
    error: Optional[ErrorInfo] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: Optional[T] = None) -> 'Result[T]':
        return cls(value=value)

    @classmethod
    def failure(cls, error: ErrorInfo) -> 'Result[T]':
        return cls(error=error)
