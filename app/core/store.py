"""
ApplyForm API - Relational Store
Queries against the teams / members / app_settings tables.

Every member write runs inside a transaction that first locks the target
team row, so writes for one team are serialized. The unique constraints in
schema.sql stay the final arbiter; their violations surface as UniqueViolation.
"""

import asyncpg
import logging
from contextlib import contextmanager
from typing import Optional, List, Dict, Any

from app.core.exceptions import UniqueViolation, TeamMissing
from app.core.postgres import PostgresClient, get_postgres_client
from app.schemas.members import Member
from app.schemas.teams import Team

logger = logging.getLogger(__name__)

MEMBER_COLUMNS = (
    "id, team_code, color, job, game_account_id, nickname, contact_id, "
    "avatar_url, joined_at, updated_at, external_subject_id, is_privileged"
)

INSERTABLE_COLUMNS = (
    "team_code", "color", "job", "game_account_id", "nickname", "contact_id",
    "avatar_url", "joined_at", "updated_at", "external_subject_id",
)

UPDATABLE_COLUMNS = frozenset((
    "team_code", "color", "job", "game_account_id", "nickname", "contact_id",
    "avatar_url", "external_subject_id", "updated_at",
))


class TeamDeletion:
    DELETED = "deleted"
    OCCUPIED = "occupied"
    NOT_FOUND = "not_found"


@contextmanager
def _translate_errors(team_code: Optional[str] = None):
    try:
        yield
    except asyncpg.UniqueViolationError as e:
        raise UniqueViolation(e.constraint_name, str(e)) from e
    except asyncpg.ForeignKeyViolationError as e:
        raise TeamMissing(team_code or "") from e


def _member(row) -> Optional[Member]:
    return Member.model_validate(dict(row)) if row else None


class MemberStore:
    """asyncpg-backed store for teams and members."""

    def __init__(self, client: PostgresClient):
        self.client = client

    async def _pool(self) -> asyncpg.Pool:
        return await self.client.get_pool()

    @staticmethod
    async def _lock_team(conn: asyncpg.Connection, team_code: str):
        found = await conn.fetchval(
            "SELECT 1 FROM teams WHERE code = $1 FOR UPDATE", team_code
        )
        if not found:
            raise TeamMissing(team_code)

    # ==================== Teams ====================

    async def get_team(self, code: str) -> Optional[Team]:
        pool = await self._pool()
        row = await pool.fetchrow(
            "SELECT code, name, created_at FROM teams WHERE code = $1", code
        )
        return Team.model_validate(dict(row)) if row else None

    async def insert_team(self, code: str, name: str) -> Team:
        pool = await self._pool()
        with _translate_errors(code):
            row = await pool.fetchrow(
                "INSERT INTO teams (code, name) VALUES ($1, $2) RETURNING code, name, created_at",
                code, name
            )
        return Team.model_validate(dict(row))

    async def delete_team_if_empty(self, code: str) -> str:
        pool = await self._pool()
        async with pool.acquire() as conn:
            async with conn.transaction():
                found = await conn.fetchval(
                    "SELECT 1 FROM teams WHERE code = $1 FOR UPDATE", code
                )
                if not found:
                    return TeamDeletion.NOT_FOUND
                status = await conn.execute(
                    "DELETE FROM teams t WHERE t.code = $1 "
                    "AND NOT EXISTS (SELECT 1 FROM members m WHERE m.team_code = t.code)",
                    code
                )
        # asyncpg returns the command tag, e.g. "DELETE 1"
        return TeamDeletion.DELETED if status.endswith(" 1") else TeamDeletion.OCCUPIED

    async def list_team_members(self, code: str) -> List[Member]:
        pool = await self._pool()
        rows = await pool.fetch(
            f"SELECT {MEMBER_COLUMNS} FROM members WHERE team_code = $1 ORDER BY joined_at ASC, id ASC",
            code
        )
        return [_member(r) for r in rows]

    # ==================== Members ====================

    async def get_member(self, member_id: int) -> Optional[Member]:
        pool = await self._pool()
        row = await pool.fetchrow(f"SELECT {MEMBER_COLUMNS} FROM members WHERE id = $1", member_id)
        return _member(row)

    async def get_member_by_subject(self, subject_id: str) -> Optional[Member]:
        pool = await self._pool()
        row = await pool.fetchrow(
            f"SELECT {MEMBER_COLUMNS} FROM members WHERE external_subject_id = $1", subject_id
        )
        return _member(row)

    async def get_member_by_account(self, game_account_id: str) -> Optional[Member]:
        pool = await self._pool()
        row = await pool.fetchrow(
            f"SELECT {MEMBER_COLUMNS} FROM members WHERE game_account_id = $1", game_account_id
        )
        return _member(row)

    async def list_members(self) -> List[Member]:
        pool = await self._pool()
        rows = await pool.fetch(
            f"SELECT {MEMBER_COLUMNS} FROM members ORDER BY team_code ASC, joined_at ASC, id ASC"
        )
        return [_member(r) for r in rows]

    async def insert_member(self, fields: Dict[str, Any]) -> Member:
        """Insert a member row; the team row is locked for the duration."""
        columns = [c for c in INSERTABLE_COLUMNS if c in fields]
        placeholders = ", ".join(f"${i + 1}" for i in range(len(columns)))
        query = (
            f"INSERT INTO members ({', '.join(columns)}) VALUES ({placeholders}) "
            f"RETURNING {MEMBER_COLUMNS}"
        )
        team_code = fields["team_code"]
        pool = await self._pool()
        with _translate_errors(team_code):
            async with pool.acquire() as conn:
                async with conn.transaction():
                    await self._lock_team(conn, team_code)
                    row = await conn.fetchrow(query, *[fields[c] for c in columns])
        return _member(row)

    async def update_member(
        self,
        member_id: int,
        changes: Dict[str, Any],
        lock_team: Optional[str] = None
    ) -> Optional[Member]:
        """
        Apply changes to one row in a single statement.

        Returns None when the row no longer exists.
        """
        unknown = set(changes) - UPDATABLE_COLUMNS
        if unknown:
            raise ValueError(f"Columns not updatable: {sorted(unknown)}")

        columns = list(changes)
        set_clause = ", ".join(f"{c} = ${i + 1}" for i, c in enumerate(columns))
        query = (
            f"UPDATE members SET {set_clause} WHERE id = ${len(columns) + 1} "
            f"RETURNING {MEMBER_COLUMNS}"
        )
        pool = await self._pool()
        with _translate_errors(lock_team):
            async with pool.acquire() as conn:
                async with conn.transaction():
                    if lock_team:
                        await self._lock_team(conn, lock_team)
                    row = await conn.fetchrow(query, *[changes[c] for c in columns], member_id)
        return _member(row)

    async def delete_member(self, member_id: int) -> bool:
        pool = await self._pool()
        status = await pool.execute("DELETE FROM members WHERE id = $1", member_id)
        return status.endswith(" 1")

    # ==================== Settings ====================

    async def get_setting(self, key: str) -> Optional[str]:
        pool = await self._pool()
        return await pool.fetchval("SELECT value FROM app_settings WHERE key = $1", key)

    async def set_setting(self, key: str, value: str):
        pool = await self._pool()
        await pool.execute(
            "INSERT INTO app_settings (key, value) VALUES ($1, $2) "
            "ON CONFLICT (key) DO UPDATE SET value = excluded.value",
            key, value
        )


def get_store() -> MemberStore:
    """FastAPI dependency for the store."""
    return MemberStore(get_postgres_client())
