"""
ApplyForm API - Slot Allocator
Decides whether a color/job pair can be taken in a team
"""

from enum import Enum
from typing import Optional, Iterable

from app.core.exceptions import ConflictError, NotFoundError
from app.core.store import MemberStore
from app.schemas.common import TEAM_SIZE
from app.schemas.members import Member


class SlotVerdict(str, Enum):
    OK = "ok"
    TEAM_NOT_FOUND = "team_not_found"
    TEAM_FULL = "team_full"
    COLOR_TAKEN = "color_taken"
    JOB_TAKEN = "job_taken"


def _value(v) -> str:
    return getattr(v, "value", v)


def evaluate_slot(
    occupants: Iterable[Member],
    color,
    job,
    excluding_member_id: Optional[int] = None
) -> SlotVerdict:
    """
    Check a proposed color/job against a team's current occupants.

    Order is capacity, then color, then job; the first failure is returned.
    The excluded member (the one being edited) does not count as an occupant.
    """
    others = [m for m in occupants if m.id != excluding_member_id]

    if len(others) >= TEAM_SIZE:
        return SlotVerdict.TEAM_FULL
    if color is not None and any(_value(m.color) == _value(color) for m in others):
        return SlotVerdict.COLOR_TAKEN
    if job is not None and any(_value(m.job) == _value(job) for m in others):
        return SlotVerdict.JOB_TAKEN
    return SlotVerdict.OK


def raise_for_verdict(verdict: SlotVerdict, team_code: str, color=None, job=None):
    """Turn a failed verdict into the matching API error."""
    if verdict == SlotVerdict.OK:
        return
    if verdict == SlotVerdict.TEAM_NOT_FOUND:
        raise NotFoundError("Team", team_code, detail=f"Team with code {team_code} not found.")
    if verdict == SlotVerdict.TEAM_FULL:
        raise ConflictError(f"Team {team_code} is already full ({TEAM_SIZE} members).", field="team_code")
    if verdict == SlotVerdict.COLOR_TAKEN:
        raise ConflictError(f"The color '{_value(color)}' is already taken in team {team_code}.", field="color")
    raise ConflictError(f"The job '{_value(job)}' is already taken in team {team_code}.", field="job")


class SlotAllocator:
    """Store-backed slot checks."""

    def __init__(self, store: MemberStore):
        self.store = store

    async def check_slot(
        self,
        team_code: str,
        color,
        job,
        excluding_member_id: Optional[int] = None
    ) -> SlotVerdict:
        team = await self.store.get_team(team_code)
        if not team:
            return SlotVerdict.TEAM_NOT_FOUND
        occupants = await self.store.list_team_members(team_code)
        return evaluate_slot(occupants, color, job, excluding_member_id)

    async def require_slot(
        self,
        team_code: str,
        color,
        job,
        excluding_member_id: Optional[int] = None
    ):
        verdict = await self.check_slot(team_code, color, job, excluding_member_id)
        raise_for_verdict(verdict, team_code, color, job)
