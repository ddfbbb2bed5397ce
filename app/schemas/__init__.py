"""
ApplyForm API - Schemas Package
Centralized exports for all Pydantic schemas
"""

# Common (Enums and Base Models)
from .common import (
    # Enums
    Color,
    Job,
    # Constants
    TEAM_SIZE,
    # Base Responses
    BaseResponse,
    ErrorResponse,
    # Parsing
    parse_request,
)

# Teams
from .teams import (
    TeamCodeRequest,
    TeamCreate,
    Team,
    PublicMember,
    TeamRoster,
    TeamCreateResponse,
)

# Members
from .members import (
    JoinRequest,
    MemberCreate,
    MemberPatch,
    Member,
    MemberResponse,
    MemberListResponse,
    PRIVILEGED_FIELDS,
)

# Settings
from .settings import RegistrationStatus

__all__ = [
    # Common
    "Color",
    "Job",
    "TEAM_SIZE",
    "BaseResponse",
    "ErrorResponse",
    "parse_request",
    # Teams
    "TeamCodeRequest",
    "TeamCreate",
    "Team",
    "PublicMember",
    "TeamRoster",
    "TeamCreateResponse",
    # Members
    "JoinRequest",
    "MemberCreate",
    "MemberPatch",
    "Member",
    "MemberResponse",
    "MemberListResponse",
    "PRIVILEGED_FIELDS",
    # Settings
    "RegistrationStatus",
]
