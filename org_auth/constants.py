"""
Org Auth constants

Enumerations are enforced in code, not by database constraints
"""

from typing import Dict, List

# Organization member roles
ROLE_ADMIN = 'admin'
ROLE_MEMBER = 'member'

MEMBER_ROLES: List[str] = [ROLE_ADMIN, ROLE_MEMBER]

# Token cache key formats
REFRESH_TOKEN_KEY_FORMAT = 'refresh_token:{token}'
REVOKED_TOKEN_KEY_FORMAT = 'revoked_token:{token}'
REVOKED_MARKER = 'revoked'

# JWT token types
TOKEN_TYPE_ACCESS = 'access'
TOKEN_TYPE_REFRESH = 'refresh'

# Defaults
DEFAULT_ACCESS_TOKEN_LIFETIME = 60 * 60  # 1 hour
DEFAULT_REFRESH_TOKEN_LIFETIME = 60 * 60 * 24 * 7  # 7 days
DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 10
DEFAULT_READ_RETRY_ATTEMPTS = 3
DEFAULT_READ_RETRY_WAIT = 0.1  # seconds, doubled per attempt

# Multi-step operations, named for partial failure reports
STEP_LINK_CREATOR = 'link_creator'
STEP_LINK_MEMBER = 'link_member'
STEP_UNLINK_MEMBER = 'unlink_member'
STEP_RETRACT_MEMBERSHIPS = 'retract_memberships'
STEP_RECORD_REFRESH_TOKEN = 'record_refresh_token'
STEP_WRITE_REVOKED_MARKER = 'write_revoked_marker'


# HTTP status codes
class HttpStatus:
    OK = 200
    CREATED = 201
    NO_CONTENT = 204
    BAD_REQUEST = 400
    UNAUTHORIZED = 401
    FORBIDDEN = 403
    NOT_FOUND = 404
    CONFLICT = 409
    INTERNAL_SERVER_ERROR = 500
    BAD_GATEWAY = 502
    SERVICE_UNAVAILABLE = 503


# Error codes, stable and machine readable
class ErrorCode:
    # Authentication
    INVALID_CREDENTIALS = 'invalid_credentials'
    INVALID_TOKEN = 'invalid_token'
    UNAUTHORIZED = 'unauthorized'

    # Authorization
    FORBIDDEN = 'forbidden'
    NOT_FOUND = 'not_found'

    # Validation
    CONFLICT = 'conflict'
    BAD_REQUEST = 'bad_request'

    # Infrastructure
    DEPENDENCY_ERROR = 'dependency_error'
    PARTIAL_FAILURE = 'partial_failure'


# Error code -> HTTP status, used by the transport adapter only
ERROR_STATUS: Dict[str, int] = {
    ErrorCode.INVALID_CREDENTIALS: HttpStatus.UNAUTHORIZED,
    ErrorCode.INVALID_TOKEN: HttpStatus.UNAUTHORIZED,
    ErrorCode.UNAUTHORIZED: HttpStatus.UNAUTHORIZED,
    ErrorCode.FORBIDDEN: HttpStatus.FORBIDDEN,
    ErrorCode.NOT_FOUND: HttpStatus.NOT_FOUND,
    ErrorCode.CONFLICT: HttpStatus.CONFLICT,
    ErrorCode.BAD_REQUEST: HttpStatus.BAD_REQUEST,
    ErrorCode.DEPENDENCY_ERROR: HttpStatus.SERVICE_UNAVAILABLE,
    ErrorCode.PARTIAL_FAILURE: HttpStatus.INTERNAL_SERVER_ERROR,
}
