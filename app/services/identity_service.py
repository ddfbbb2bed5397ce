"""
ApplyForm API - Identity Binder
One verified identity, at most one member row.
"""

import logging
from typing import Optional

from app.core.exceptions import ConflictError, NotFoundError, PermissionDeniedError
from app.core.store import MemberStore
from app.schemas.members import Member

logger = logging.getLogger(__name__)


class IdentityBinder:
    """Maps external subject ids to member rows and guards ownership."""

    def __init__(self, store: MemberStore):
        self.store = store

    async def resolve(self, subject_id: str) -> Optional[Member]:
        return await self.store.get_member_by_subject(subject_id)

    async def ensure_unbound(self, subject_id: str, excluding_member_id: Optional[int] = None):
        """Conflict if another row already carries this subject."""
        holder = await self.store.get_member_by_subject(subject_id)
        if holder and holder.id != excluding_member_id:
            raise ConflictError(
                f"External subject ID '{subject_id}' is already registered by another member.",
                field="external_subject_id"
            )

    async def ensure_not_registered(self, subject_id: str):
        """Join-time rule: one identity, one slot, system-wide."""
        if await self.store.get_member_by_subject(subject_id):
            raise ConflictError(
                "You are already registered; one account can only hold one slot.",
                field="external_subject_id"
            )

    async def bind(self, member_id: int, subject_id: Optional[str]) -> Member:
        """
        Attach (or, with None, detach) a subject to a member row.

        Used by privileged actors; the same uniqueness rule applies.
        """
        if subject_id:
            await self.ensure_unbound(subject_id, excluding_member_id=member_id)
        member = await self.store.update_member(member_id, {"external_subject_id": subject_id})
        if not member:
            raise NotFoundError("Member", str(member_id))
        logger.info(f"Member {member_id} bound to subject {subject_id!r}")
        return member

    async def authorize_owner(
        self,
        subject_id: str,
        expected_account_id: Optional[str] = None,
        hide_mismatch: bool = False
    ) -> Member:
        """
        Return the caller's own member row.

        When ``expected_account_id`` is given, the row must also carry that
        game account id. A mismatch is a PermissionDeniedError, or a
        NotFoundError when ``hide_mismatch`` asks for a uniform answer.
        """
        member = await self.resolve(subject_id)
        if not member:
            raise NotFoundError("Member", detail="You are not registered in any team.")

        if expected_account_id is not None and member.game_account_id != expected_account_id:
            logger.warning(
                f"Ownership check failed: subject {subject_id} targeted account "
                f"{expected_account_id!r} but owns {member.game_account_id!r}"
            )
            if hide_mismatch:
                raise NotFoundError("Member", detail="Member not found or does not belong to your account.")
            raise PermissionDeniedError("Member not found or does not belong to your account.")
        return member

    async def require_privileged(self, subject_id: str) -> Member:
        member = await self.resolve(subject_id)
        if not member or not member.is_privileged:
            logger.warning(f"Privileged access denied for subject {subject_id}")
            raise PermissionDeniedError("You do not have administrator privileges.")
        return member
