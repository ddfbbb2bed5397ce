"""
ApplyForm API - Admin Routes
Privileged member management and the registration switch
"""

import logging
from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, Request, Response, UploadFile
from typing import Optional

from app.core.auth import get_privileged_member
from app.schemas.common import parse_request
from app.schemas.members import Member, MemberCreate, MemberPatch, MemberResponse, MemberListResponse
from app.schemas.settings import RegistrationStatus
from app.routes.members import present_fields, edit_response
from app.services.media_service import read_avatar
from app.services.members_service import MembersService, get_members_service
from app.services.registration_service import RegistrationService, get_registration_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"])


# ==================== Members ====================

@router.get("/members", response_model=MemberListResponse)
async def list_members(
    admin: Member = Depends(get_privileged_member),
    members: MembersService = Depends(get_members_service)
):
    """All members, grouped by team code and ordered by join time."""
    return MemberListResponse(members=await members.list_members())


@router.post("/members", response_model=MemberResponse, status_code=201)
async def add_member(
    team_code: Optional[str] = Form(None, alias="teamCode"),
    color: Optional[str] = Form(None),
    job: Optional[str] = Form(None),
    game_account_id: Optional[str] = Form(None, alias="gameAccountId"),
    nickname: Optional[str] = Form(None),
    contact_id: Optional[str] = Form(None, alias="contactId"),
    external_subject_id: Optional[str] = Form(None, alias="externalSubjectId"),
    avatar_file: Optional[UploadFile] = File(None, alias="avatarFile"),
    admin: Member = Depends(get_privileged_member),
    members: MembersService = Depends(get_members_service)
):
    """
    Add a member on someone's behalf.

    Same rules as joining, except that registration may be paused and the
    identity binding is optional.
    """
    request = parse_request(MemberCreate, {
        "team_code": team_code,
        "color": color,
        "job": job,
        "game_account_id": game_account_id,
        "nickname": nickname,
        "contact_id": contact_id,
        "external_subject_id": external_subject_id,
    })
    avatar = await read_avatar(avatar_file)
    member = await members.add_member(request, avatar)
    logger.info(f"Admin {admin.id} added member {member.id}")
    return MemberResponse(message="Member added successfully.", member=member)


@router.patch("/members/{member_id}", response_model=MemberResponse)
async def edit_member(
    member_id: int,
    request: Request,
    tasks: BackgroundTasks,
    team_code: Optional[str] = Form(None, alias="teamCode"),
    color: Optional[str] = Form(None),
    job: Optional[str] = Form(None),
    game_account_id: Optional[str] = Form(None, alias="gameAccountId"),
    nickname: Optional[str] = Form(None),
    contact_id: Optional[str] = Form(None, alias="contactId"),
    external_subject_id: Optional[str] = Form(None, alias="externalSubjectId"),
    clear_avatar: Optional[bool] = Form(None, alias="clearAvatar"),
    avatar_file: Optional[UploadFile] = File(None, alias="avatarFile"),
    admin: Member = Depends(get_privileged_member),
    members: MembersService = Depends(get_members_service)
):
    """
    Edit any member row.

    Moving to another team re-checks capacity and the member's color and
    job there. An empty externalSubjectId removes the identity binding.
    """
    # Empty form values arrive as None; a submitted-but-empty subject means "unbind"
    if external_subject_id is None and "externalSubjectId" in await request.form():
        external_subject_id = ""

    patch = parse_request(MemberPatch, present_fields(
        team_code=team_code,
        color=color,
        job=job,
        game_account_id=game_account_id,
        nickname=nickname,
        contact_id=contact_id,
        external_subject_id=external_subject_id,
        clear_avatar=clear_avatar,
    ))
    avatar = await read_avatar(avatar_file)
    member, changed = await members.edit_member(member_id, patch, tasks, avatar)
    return edit_response(member, changed)


@router.delete("/members/{member_id}", status_code=204)
async def delete_member(
    member_id: int,
    tasks: BackgroundTasks,
    admin: Member = Depends(get_privileged_member),
    members: MembersService = Depends(get_members_service)
):
    removed = await members.delete_member(member_id, tasks)
    logger.info(f"Admin {admin.id} deleted member {removed.id}")
    return Response(status_code=204)


# ==================== Settings ====================

@router.post("/settings/toggle-collection", response_model=RegistrationStatus)
async def toggle_collection(
    admin: Member = Depends(get_privileged_member),
    registration: RegistrationService = Depends(get_registration_service)
):
    """Pause or resume registration."""
    paused = await registration.toggle()
    logger.info(f"Admin {admin.id} set collection_paused={paused}")
    return RegistrationStatus(
        collection_paused=paused,
        message="Registration paused." if paused else "Registration resumed."
    )
