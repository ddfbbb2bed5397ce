"""
ApplyForm API - Members Service
Join, add, edit and delete member rows.

Every mutation follows the same shape: synchronous checks that produce
friendly errors, one transactional write (the store locks the team row and
its unique constraints have the final word), then cleanup obligations handed
to the request's BackgroundTasks so they run after the response is sent.
An upload whose write failed is removed before the error propagates.
"""

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Dict, Any, List, Tuple

from fastapi import BackgroundTasks, Depends

from app.core.exceptions import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    UniqueViolation,
    TeamMissing
)
from app.core.store import MemberStore, get_store
from app.schemas.members import JoinRequest, MemberCreate, MemberPatch, Member, PRIVILEGED_FIELDS
from app.services.identity_service import IdentityBinder
from app.services.media_service import MediaTracker, AvatarUpload, get_media_tracker
from app.services.registration_service import RegistrationService
from app.services.slot_allocator import SlotAllocator
from app.services.teams_service import TeamsService

logger = logging.getLogger(__name__)

# Unique constraint name -> request field it protects
CONSTRAINT_FIELDS = {
    "uq_members_team_color": "color",
    "uq_members_team_job": "job",
    "uq_members_game_account_id": "game_account_id",
    "uq_members_external_subject_id": "external_subject_id",
}

# Fields an owner may change on their own row
OWNER_EDITABLE = ("nickname", "contact_id", "color", "job")


def _plain(value):
    return value.value if isinstance(value, Enum) else value


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _team_not_found(team_code: str) -> NotFoundError:
    return NotFoundError("Team", team_code, detail=f"Team with code {team_code} not found.")


def conflict_from_violation(violation: UniqueViolation, values: Dict[str, Any]) -> ConflictError:
    """Translate a store constraint violation into a ConflictError naming the field."""
    field = CONSTRAINT_FIELDS.get(violation.constraint)
    team_code = values.get("team_code")

    if field == "color":
        message = f"The color '{_plain(values.get('color'))}' is already taken in team {team_code}."
    elif field == "job":
        message = f"The job '{_plain(values.get('job'))}' is already taken in team {team_code}."
    elif field == "game_account_id":
        message = f"Game account ID '{values.get('game_account_id')}' is already registered."
    elif field == "external_subject_id":
        message = "This account is already registered to another member."
    else:
        logger.error(f"Unmapped unique violation on {violation.constraint}: {violation}")
        message = "The request conflicts with an existing record."
    return ConflictError(message, field=field)


class MembersService:
    """Service for member rows and their cleanup obligations."""

    def __init__(self, store: MemberStore, media: MediaTracker):
        self.store = store
        self.media = media
        self.identity = IdentityBinder(store)
        self.slots = SlotAllocator(store)
        self.teams = TeamsService(store)
        self.registration = RegistrationService(store)

    async def _discard(self, locator: Optional[str]):
        """Remove an upload whose row write did not commit."""
        # Background tasks are dropped when the request ends in an error
        if locator:
            await self.media.remove(locator)

    # ==================== Reads ====================

    async def get_my_member(self, subject_id: str) -> Optional[Member]:
        return await self.identity.resolve(subject_id)

    async def list_members(self) -> List[Member]:
        return await self.store.list_members()

    # ==================== Create ====================

    async def join_team(
        self,
        request: JoinRequest,
        subject_id: str,
        avatar: Optional[AvatarUpload] = None
    ) -> Member:
        """Take a slot in an existing team for the calling identity."""
        await self.registration.ensure_open()
        return await self._create(request, subject_id, avatar, privileged=False)

    async def add_member(
        self,
        request: MemberCreate,
        avatar: Optional[AvatarUpload] = None
    ) -> Member:
        """Privileged add on someone's behalf; ignores the registration pause."""
        return await self._create(request, request.external_subject_id, avatar, privileged=True)

    async def _create(
        self,
        request: JoinRequest,
        subject_id: Optional[str],
        avatar: Optional[AvatarUpload],
        privileged: bool
    ) -> Member:
        team_code = request.team_code
        if not await self.store.get_team(team_code):
            raise _team_not_found(team_code)

        if subject_id:
            if privileged:
                await self.identity.ensure_unbound(subject_id)
            else:
                await self.identity.ensure_not_registered(subject_id)

        holder = await self.store.get_member_by_account(request.game_account_id)
        if holder:
            raise ConflictError(
                f"Game account ID '{request.game_account_id}' is already registered in team {holder.team_code}.",
                field="game_account_id"
            )

        await self.slots.require_slot(team_code, request.color, request.job)

        avatar_url = None
        if avatar:
            avatar_url = await self.media.upload(avatar, request.game_account_id, team_code)

        now = _utcnow()
        fields = {
            "team_code": team_code,
            "color": _plain(request.color),
            "job": _plain(request.job),
            "game_account_id": request.game_account_id,
            "nickname": request.nickname,
            "contact_id": request.contact_id,
            "avatar_url": avatar_url,
            "joined_at": now,
            "external_subject_id": subject_id,
        }
        if privileged:
            fields["updated_at"] = now

        try:
            member = await self.store.insert_member(fields)
        except UniqueViolation as e:
            await self._discard(avatar_url)
            raise conflict_from_violation(e, fields)
        except TeamMissing:
            await self._discard(avatar_url)
            raise _team_not_found(team_code)

        logger.info(
            f"Member {member.id} ({member.game_account_id}) joined team {team_code} "
            f"as {member.color.value}/{member.job.value}"
            + (" [privileged add]" if privileged else "")
        )
        return member

    # ==================== Edit ====================

    async def edit_own_member(
        self,
        subject_id: str,
        game_account_id: str,
        patch: MemberPatch,
        tasks: BackgroundTasks,
        avatar: Optional[AvatarUpload] = None
    ) -> Tuple[Member, bool]:
        target = await self.identity.authorize_owner(subject_id, game_account_id)

        # Re-sending the current value is allowed; only an actual change is refused
        restricted = [
            f for f in PRIVILEGED_FIELDS
            if f in patch.model_fields_set and (getattr(patch, f) or None) != getattr(target, f)
        ]
        if restricted:
            logger.warning(f"Owner {subject_id} attempted to change restricted fields {restricted}")
            raise PermissionDeniedError(f"You cannot change: {', '.join(restricted)}")

        return await self._apply_edit(target, patch, tasks, avatar)

    async def edit_member(
        self,
        member_id: int,
        patch: MemberPatch,
        tasks: BackgroundTasks,
        avatar: Optional[AvatarUpload] = None
    ) -> Tuple[Member, bool]:
        """Privileged edit of any row, including team moves and rebinding."""
        target = await self.store.get_member(member_id)
        if not target:
            raise NotFoundError("Member", str(member_id))
        return await self._apply_edit(target, patch, tasks, avatar)

    def _collect_changes(self, target: Member, patch: MemberPatch) -> Dict[str, Any]:
        changes = {}
        present = patch.model_fields_set

        for name in OWNER_EDITABLE + ("team_code", "game_account_id"):
            value = getattr(patch, name)
            if name in present and value is not None and value != getattr(target, name):
                changes[name] = _plain(value)

        if "external_subject_id" in present:
            subject = patch.external_subject_id or None
            if subject != target.external_subject_id:
                changes["external_subject_id"] = subject
        return changes

    async def _apply_edit(
        self,
        target: Member,
        patch: MemberPatch,
        tasks: BackgroundTasks,
        avatar: Optional[AvatarUpload]
    ) -> Tuple[Member, bool]:
        """
        Validate and write a patch against one row.

        Returns the resulting row and whether anything was written. Old
        avatars and a team left empty by a move are cleaned up only after
        the write committed.
        """
        changes = self._collect_changes(target, patch)
        dest_team = changes.get("team_code", target.team_code)
        effective = {
            "team_code": dest_team,
            "color": changes.get("color", _plain(target.color)),
            "job": changes.get("job", _plain(target.job)),
            "game_account_id": changes.get("game_account_id", target.game_account_id),
        }

        if "team_code" in changes and not await self.store.get_team(dest_team):
            raise _team_not_found(dest_team)

        if {"team_code", "color", "job"} & changes.keys():
            await self.slots.require_slot(
                dest_team, effective["color"], effective["job"], excluding_member_id=target.id
            )

        if "game_account_id" in changes:
            holder = await self.store.get_member_by_account(changes["game_account_id"])
            if holder and holder.id != target.id:
                raise ConflictError(
                    f"Game account ID '{changes['game_account_id']}' is already registered.",
                    field="game_account_id"
                )

        if changes.get("external_subject_id"):
            await self.identity.ensure_unbound(changes["external_subject_id"], excluding_member_id=target.id)

        fresh_upload = None
        if patch.clear_avatar:
            if target.avatar_url:
                changes["avatar_url"] = None
        elif avatar:
            fresh_upload = await self.media.upload(avatar, effective["game_account_id"], dest_team)
            changes["avatar_url"] = fresh_upload

        if not changes:
            return target, False

        changes["updated_at"] = _utcnow()
        try:
            updated = await self.store.update_member(target.id, changes, lock_team=dest_team)
        except UniqueViolation as e:
            await self._discard(fresh_upload)
            raise conflict_from_violation(e, effective)
        except TeamMissing:
            await self._discard(fresh_upload)
            raise _team_not_found(dest_team)

        if updated is None:
            await self._discard(fresh_upload)
            raise NotFoundError("Member", str(target.id))

        if "avatar_url" in changes and target.avatar_url:
            tasks.add_task(self.media.remove, target.avatar_url)
        if "team_code" in changes:
            tasks.add_task(self.teams.cleanup_empty_team, target.team_code)

        logger.info(f"Member {target.id} updated: {sorted(k for k in changes if k != 'updated_at')}")
        return updated, True

    # ==================== Delete ====================

    async def delete_own_member(
        self,
        subject_id: str,
        game_account_id: str,
        tasks: BackgroundTasks
    ) -> Member:
        # Mismatch answers NotFound so other members' rows are not revealed
        target = await self.identity.authorize_owner(subject_id, game_account_id, hide_mismatch=True)
        return await self._delete(target, tasks)

    async def delete_member(self, member_id: int, tasks: BackgroundTasks) -> Member:
        target = await self.store.get_member(member_id)
        if not target:
            raise NotFoundError("Member", str(member_id))
        return await self._delete(target, tasks)

    async def _delete(self, target: Member, tasks: BackgroundTasks) -> Member:
        if not await self.store.delete_member(target.id):
            raise NotFoundError("Member", str(target.id))

        if target.avatar_url:
            tasks.add_task(self.media.remove, target.avatar_url)
        tasks.add_task(self.teams.cleanup_empty_team, target.team_code)

        logger.info(f"Member {target.id} ({target.game_account_id}) removed from team {target.team_code}")
        return target


def get_members_service(
    store: MemberStore = Depends(get_store),
    media: MediaTracker = Depends(get_media_tracker)
) -> MembersService:
    return MembersService(store, media)
