"""
ApplyForm API - Member Schemas
Typed requests for join / add / edit and the member row model
"""

from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .common import BaseResponse, Color, Job, TEAM_CODE_PATTERN, CONTACT_ID_PATTERN


class JoinRequest(BaseModel):
    """Join a team (owner path)."""
    model_config = ConfigDict(str_strip_whitespace=True)

    team_code: str = Field(..., pattern=TEAM_CODE_PATTERN)
    color: Color
    job: Job
    game_account_id: str = Field(..., min_length=1, max_length=13)
    nickname: str = Field(..., min_length=1, max_length=50)
    contact_id: str = Field(..., pattern=CONTACT_ID_PATTERN)


class MemberCreate(JoinRequest):
    """Add a member on someone's behalf (privileged path)."""
    external_subject_id: Optional[str] = Field(None, max_length=255)

    @field_validator("external_subject_id")
    @classmethod
    def blank_subject_is_none(cls, v: Optional[str]) -> Optional[str]:
        return v or None


class MemberPatch(BaseModel):
    """
    Partial update of a member row.

    Absent fields are left untouched. An empty external_subject_id clears the
    binding (privileged path only).
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    team_code: Optional[str] = Field(None, pattern=TEAM_CODE_PATTERN)
    color: Optional[Color] = None
    job: Optional[Job] = None
    game_account_id: Optional[str] = Field(None, min_length=1, max_length=13)
    nickname: Optional[str] = Field(None, min_length=1, max_length=50)
    contact_id: Optional[str] = Field(None, pattern=CONTACT_ID_PATTERN)
    external_subject_id: Optional[str] = Field(None, max_length=255)
    clear_avatar: bool = False


PRIVILEGED_FIELDS = ("team_code", "game_account_id", "external_subject_id")


class Member(BaseModel):
    """Member row."""
    id: int
    team_code: str
    color: Color
    job: Job
    game_account_id: str
    nickname: str
    contact_id: str
    avatar_url: Optional[str] = None
    joined_at: datetime
    updated_at: Optional[datetime] = None
    external_subject_id: Optional[str] = None
    is_privileged: bool = False


class MemberResponse(BaseResponse):
    member: Optional[Member] = None
    changed: Optional[bool] = None


class MemberListResponse(BaseModel):
    members: List[Member] = []
