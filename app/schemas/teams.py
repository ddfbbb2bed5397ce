"""
ApplyForm API - Team Schemas
Team creation and roster models
"""

from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field

from .common import Color, Job, TEAM_CODE_PATTERN


class TeamCodeRequest(BaseModel):
    """Look up a team by code."""
    model_config = ConfigDict(str_strip_whitespace=True)

    team_code: str = Field(..., pattern=TEAM_CODE_PATTERN)


class TeamCreate(TeamCodeRequest):
    """Create team."""
    team_name: str = Field(..., min_length=1, max_length=50)


class Team(BaseModel):
    """Team row."""
    code: str
    name: str
    created_at: Optional[datetime] = None


class PublicMember(BaseModel):
    """Member fields visible to anyone holding the team code."""
    color: Color
    job: Job
    game_account_id: str
    nickname: str
    avatar_url: Optional[str] = None


class TeamRoster(BaseModel):
    """Team with its current members."""
    success: bool = True
    code: str
    name: str
    members: List[PublicMember] = []


class TeamCreateResponse(BaseModel):
    success: bool = True
    message: str = "Team created successfully."
    code: str
    name: str
