"""
ApplyForm API - Teams Service
Explicit team creation, roster lookup and empty-team removal
"""

import logging

from fastapi import Depends

from app.core.exceptions import ConflictError, NotFoundError, UniqueViolation
from app.core.store import MemberStore, TeamDeletion, get_store
from app.schemas.teams import Team, TeamRoster, PublicMember

logger = logging.getLogger(__name__)


class TeamsService:
    """Service for the team lifecycle."""

    def __init__(self, store: MemberStore):
        self.store = store

    async def ensure_team(self, code: str, name: str) -> Team:
        """Create a team; an existing code is a conflict, never reused."""
        if await self.store.get_team(code):
            raise ConflictError(f"Team with code {code} already exists.", field="team_code")
        try:
            team = await self.store.insert_team(code, name)
        except UniqueViolation:
            # Lost a race against another create for the same code
            raise ConflictError(f"Team with code {code} already exists.", field="team_code")
        logger.info(f"Team {code} created ({name!r})")
        return team

    async def check_team(self, code: str) -> TeamRoster:
        team = await self.store.get_team(code)
        if not team:
            raise NotFoundError("Team", code, detail=f"Team with code {code} not found.")
        members = await self.store.list_team_members(code)
        return TeamRoster(
            code=team.code,
            name=team.name,
            members=[PublicMember.model_validate(m.model_dump()) for m in members]
        )

    async def delete_if_empty(self, code: str) -> str:
        """Returns one of TeamDeletion.DELETED / OCCUPIED / NOT_FOUND."""
        return await self.store.delete_team_if_empty(code)

    async def cleanup_empty_team(self, code: str):
        """
        Deferred follow-up to a member leaving a team.

        Runs after the response is sent, so failures are only logged.
        """
        try:
            outcome = await self.delete_if_empty(code)
        except Exception as e:
            logger.error(f"Empty-team cleanup failed for {code}: {e}")
            return

        if outcome == TeamDeletion.DELETED:
            logger.info(f"Team {code} removed after its last member left")
        else:
            logger.debug(f"Team {code} not removed ({outcome})")


def get_teams_service(store: MemberStore = Depends(get_store)) -> TeamsService:
    return TeamsService(store)
