"""
ApplyForm API - Core Module
"""

from app.core.config import settings, get_settings
from app.core.exceptions import (
    ApplyFormException,
    ValidationError,
    NotFoundError,
    UnauthorizedError,
    PermissionDeniedError,
    ConflictError,
    UpstreamError,
    UniqueViolation,
    TeamMissing
)

__all__ = [
    # Config
    "settings",
    "get_settings",

    # Exceptions
    "ApplyFormException",
    "ValidationError",
    "NotFoundError",
    "UnauthorizedError",
    "PermissionDeniedError",
    "ConflictError",
    "UpstreamError",
    "UniqueViolation",
    "TeamMissing",
]
