"""
ApplyForm API - Custom Exceptions
"""

from typing import Optional, Dict, Any
from fastapi import HTTPException, status


class ApplyFormException(HTTPException):
    """Base exception for ApplyForm API."""

    def __init__(
        self,
        status_code: int,
        detail: str,
        error_code: Optional[str] = None,
        extra: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)
        self.error_code = error_code
        self.extra = extra or {}


class ValidationError(ApplyFormException):
    """Malformed or out-of-range input."""

    def __init__(self, detail: str, field: str = None):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            error_code="INVALID_INPUT",
            extra={"field": field} if field else {}
        )
        self.field = field


class NotFoundError(ApplyFormException):
    """Resource not found."""

    def __init__(self, resource: str, identifier: str = None, detail: str = None):
        if detail is None:
            detail = f"{resource} not found"
            if identifier:
                detail = f"{resource} '{identifier}' not found"
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=detail,
            error_code="NOT_FOUND",
            extra={"resource": resource}
        )


class UnauthorizedError(ApplyFormException):
    """Credential missing or invalid."""

    def __init__(self, detail: str = "Authentication required"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            error_code="UNAUTHORIZED",
            headers={"WWW-Authenticate": "Bearer"}
        )


class PermissionDeniedError(ApplyFormException):
    """Authenticated, but not the owner or not privileged."""

    def __init__(self, detail: str = "Permission denied"):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
            error_code="FORBIDDEN"
        )


class ConflictError(ApplyFormException):
    """Uniqueness or slot violation."""

    def __init__(self, detail: str, field: str = None):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail,
            error_code="CONFLICT",
            extra={"field": field} if field else {}
        )
        self.field = field


class UpstreamError(ApplyFormException):
    """Media store or identity provider unreachable or failing."""

    def __init__(self, detail: str, service: str = None):
        super().__init__(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=detail,
            error_code="UPSTREAM_FAILURE",
            extra={"service": service} if service else {}
        )


class UniqueViolation(Exception):
    """
    Raised by the store when a write trips a unique constraint.

    Carries the constraint name so callers can tell which field collided.
    """

    def __init__(self, constraint: Optional[str], message: str = ""):
        super().__init__(message or f"unique constraint violated: {constraint}")
        self.constraint = constraint


class TeamMissing(Exception):
    """Raised by the store when a write targets a team row that no longer exists."""

    def __init__(self, team_code: str):
        super().__init__(f"team {team_code} does not exist")
        self.team_code = team_code
