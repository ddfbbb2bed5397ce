"""
ApplyForm API - Teams Routes
Team lookup, explicit creation and joining
"""

from fastapi import APIRouter, Depends, File, Form, UploadFile
from typing import Optional

from app.core.auth import get_current_user, CurrentUser
from app.schemas.common import parse_request
from app.schemas.members import JoinRequest, MemberResponse
from app.schemas.teams import TeamCodeRequest, TeamCreate, TeamCreateResponse, TeamRoster
from app.services.media_service import read_avatar
from app.services.members_service import MembersService, get_members_service
from app.services.registration_service import RegistrationService, get_registration_service
from app.services.teams_service import TeamsService, get_teams_service

router = APIRouter(prefix="/teams", tags=["Teams"])


# ==================== Lookup ====================

@router.post("/check", response_model=TeamRoster)
async def check_team(
    team_code: Optional[str] = Form(None, alias="teamCode"),
    teams: TeamsService = Depends(get_teams_service),
    registration: RegistrationService = Depends(get_registration_service)
):
    """
    Check a team code before joining.

    Returns the team name and the slots already taken. Refused while
    registration is paused.
    """
    request = parse_request(TeamCodeRequest, {"team_code": team_code})
    await registration.ensure_open()
    return await teams.check_team(request.team_code)


@router.get("/{code}", response_model=TeamRoster)
async def get_team(
    code: str,
    teams: TeamsService = Depends(get_teams_service)
):
    """Public roster for a team code."""
    request = parse_request(TeamCodeRequest, {"team_code": code})
    return await teams.check_team(request.team_code)


# ==================== Create ====================

@router.post("/create", response_model=TeamCreateResponse, status_code=201)
async def create_team(
    team_code: Optional[str] = Form(None, alias="teamCode"),
    team_name: Optional[str] = Form(None, alias="teamName"),
    teams: TeamsService = Depends(get_teams_service),
    registration: RegistrationService = Depends(get_registration_service)
):
    """Create a team with a chosen 4-digit code. Existing codes are rejected."""
    request = parse_request(TeamCreate, {"team_code": team_code, "team_name": team_name})
    await registration.ensure_open()
    team = await teams.ensure_team(request.team_code, request.team_name)
    return TeamCreateResponse(code=team.code, name=team.name)


# ==================== Join ====================

@router.post("/join", response_model=MemberResponse, status_code=201)
async def join_team(
    team_code: Optional[str] = Form(None, alias="teamCode"),
    color: Optional[str] = Form(None),
    job: Optional[str] = Form(None),
    game_account_id: Optional[str] = Form(None, alias="gameAccountId"),
    nickname: Optional[str] = Form(None),
    contact_id: Optional[str] = Form(None, alias="contactId"),
    avatar_file: Optional[UploadFile] = File(None, alias="avatarFile"),
    user: CurrentUser = Depends(get_current_user),
    members: MembersService = Depends(get_members_service)
):
    """
    Join an existing team with the authenticated account.

    One account holds at most one slot. Color and job must be free in the
    team and the team must have room.
    """
    request = parse_request(JoinRequest, {
        "team_code": team_code,
        "color": color,
        "job": job,
        "game_account_id": game_account_id,
        "nickname": nickname,
        "contact_id": contact_id,
    })
    avatar = await read_avatar(avatar_file)
    member = await members.join_team(request, user.id, avatar)
    return MemberResponse(message="Successfully joined the team!", member=member)
