"""
Org Auth exceptions
"""

from typing import Any, Dict, Optional

from .constants import ErrorCode


class OrgAuthError(Exception):
    """Base exception, carries a stable error code and a human message"""

    error_code = ErrorCode.BAD_REQUEST

    def __init__(self, message: str, error_code: Optional[str] = None):
        self.message = message
        if error_code is not None:
            self.error_code = error_code
        super().__init__(message)


class InvalidCredentialsError(OrgAuthError):
    """Unknown email or wrong password, deliberately indistinguishable"""
    error_code = ErrorCode.INVALID_CREDENTIALS


class InvalidTokenError(OrgAuthError):
    """Refresh token revoked, absent, expired or badly signed"""
    error_code = ErrorCode.INVALID_TOKEN


class UnauthorizedError(OrgAuthError):
    """Access token missing or not verifiable"""
    error_code = ErrorCode.UNAUTHORIZED


class ForbiddenError(OrgAuthError):
    """Member without the required role"""
    error_code = ErrorCode.FORBIDDEN


class NotFoundError(OrgAuthError):
    """Resource missing, or hidden from a non-member"""
    error_code = ErrorCode.NOT_FOUND


class ConflictError(OrgAuthError):
    """Duplicate resource or stale concurrent write"""
    error_code = ErrorCode.CONFLICT


class BadRequestError(OrgAuthError):
    """Request violates an invariant"""
    error_code = ErrorCode.BAD_REQUEST


class DependencyError(OrgAuthError):
    """Store or cache unreachable or timed out"""
    error_code = ErrorCode.DEPENDENCY_ERROR


class PartialFailureError(OrgAuthError):
    """
    A later write failed after an earlier one committed

    ``step`` names the write that failed and ``detail`` holds the ids a
    reconciliation job needs. Neither is part of the human message.
    """
    error_code = ErrorCode.PARTIAL_FAILURE

    def __init__(self, message: str, step: str, detail: Optional[Dict[str, Any]] = None):
        self.step = step
        self.detail = detail or {}
        super().__init__(message)


class StaleWriteError(ConflictError):
    """Optimistic concurrency check failed on an organization write"""
    pass
