"""
ApplyForm API - Members Routes
Self-service access to the caller's own member row
"""

from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, Response, UploadFile
from typing import Optional, Dict, Any

from app.core.auth import get_current_user, CurrentUser
from app.schemas.common import parse_request
from app.schemas.members import MemberPatch, MemberResponse, Member
from app.services.media_service import read_avatar
from app.services.members_service import MembersService, get_members_service

router = APIRouter(prefix="/members", tags=["Members"])


def present_fields(**fields) -> Dict[str, Any]:
    """Drop form fields that were not submitted."""
    return {k: v for k, v in fields.items() if v is not None}


def edit_response(member: Member, changed: bool) -> MemberResponse:
    message = "Member updated successfully." if changed else "No changes to apply."
    return MemberResponse(message=message, member=member, changed=changed)


@router.get("/me", response_model=MemberResponse)
async def get_my_member(
    user: CurrentUser = Depends(get_current_user),
    members: MembersService = Depends(get_members_service)
):
    """The caller's registration, or `member: null` when not registered."""
    member = await members.get_my_member(user.id)
    return MemberResponse(member=member)


@router.patch("/{game_account_id}", response_model=MemberResponse)
async def edit_my_member(
    game_account_id: str,
    tasks: BackgroundTasks,
    color: Optional[str] = Form(None),
    job: Optional[str] = Form(None),
    nickname: Optional[str] = Form(None),
    contact_id: Optional[str] = Form(None, alias="contactId"),
    team_code: Optional[str] = Form(None, alias="teamCode"),
    new_game_account_id: Optional[str] = Form(None, alias="gameAccountId"),
    external_subject_id: Optional[str] = Form(None, alias="externalSubjectId"),
    clear_avatar: Optional[bool] = Form(None, alias="clearAvatar"),
    avatar_file: Optional[UploadFile] = File(None, alias="avatarFile"),
    user: CurrentUser = Depends(get_current_user),
    members: MembersService = Depends(get_members_service)
):
    """
    Edit the caller's own row.

    Only nickname, contact, color, job and avatar can be changed here;
    team, game account and identity binding are managed by administrators.
    """
    patch = parse_request(MemberPatch, present_fields(
        color=color,
        job=job,
        nickname=nickname,
        contact_id=contact_id,
        team_code=team_code,
        game_account_id=new_game_account_id,
        external_subject_id=external_subject_id,
        clear_avatar=clear_avatar,
    ))
    avatar = await read_avatar(avatar_file)
    member, changed = await members.edit_own_member(user.id, game_account_id, patch, tasks, avatar)
    return edit_response(member, changed)


@router.delete("/{game_account_id}", status_code=204)
async def delete_my_member(
    game_account_id: str,
    tasks: BackgroundTasks,
    user: CurrentUser = Depends(get_current_user),
    members: MembersService = Depends(get_members_service)
):
    """Leave the team. The slot is freed immediately."""
    await members.delete_own_member(user.id, game_account_id, tasks)
    return Response(status_code=204)
