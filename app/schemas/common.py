"""
ApplyForm API - Common Schemas
Base models, enums and request parsing shared across the application
"""

from typing import Optional, Dict, Any, Type, TypeVar
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from enum import Enum

from app.core.exceptions import ValidationError


# ==================== Enums ====================

class Color(str, Enum):
    RED = "red"
    GREEN = "green"
    BLUE = "blue"


class Job(str, Enum):
    ATTACKER = "attacker"
    DEFENDER = "defender"
    SUPPORTER = "supporter"


TEAM_SIZE = 3
TEAM_CODE_PATTERN = r"^[0-9]{4}$"
CONTACT_ID_PATTERN = r"^[1-9][0-9]{4,14}$"


# ==================== Base Response Models ====================

class BaseResponse(BaseModel):
    """Base response model."""
    success: bool = True
    message: Optional[str] = None


class ErrorResponse(BaseModel):
    """Error response model."""
    success: bool = False
    error: str
    error_code: Optional[str] = None
    details: Optional[Dict[str, Any]] = None


# ==================== Request Parsing ====================

FIELD_MESSAGES = {
    "team_code": "Invalid team code (must be 4 digits).",
    "team_name": "Team name is required (1-50 chars).",
    "color": "Invalid color selection.",
    "job": "Invalid job selection.",
    "game_account_id": "Game account ID is required (1-13 chars).",
    "nickname": "Nickname is required (1-50 chars).",
    "contact_id": "A valid contact number is required (5-15 digits, no leading zero).",
    "external_subject_id": "Invalid external subject ID.",
}

M = TypeVar("M", bound=BaseModel)


def parse_request(model: Type[M], data: Dict[str, Any]) -> M:
    """
    Validate raw request fields into a typed request model.

    Pydantic errors are converted into a ValidationError naming the first
    offending field, so the caller gets the same error shape as any other
    InvalidInput failure.
    """
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        first = e.errors()[0]
        loc = first.get("loc") or ()
        field = str(loc[0]) if loc else None
        message = FIELD_MESSAGES.get(field) or f"Invalid value for '{field}': {first.get('msg')}"
        raise ValidationError(message, field=field)
