"""Tests for asyncpg error translation in the store."""

import asyncpg
import pytest

from app.core.exceptions import UniqueViolation, TeamMissing
from app.core.store import _translate_errors


def test_unique_violation_keeps_constraint_name() -> None:
    error = asyncpg.UniqueViolationError("duplicate key value violates unique constraint")
    error.constraint_name = "uq_members_team_color"

    with pytest.raises(UniqueViolation) as exc:
        with _translate_errors("1234"):
            raise error

    assert exc.value.constraint == "uq_members_team_color"
    assert exc.value.__cause__ is error


def test_foreign_key_violation_is_team_missing() -> None:
    with pytest.raises(TeamMissing) as exc:
        with _translate_errors("1234"):
            raise asyncpg.ForeignKeyViolationError("insert or update violates foreign key constraint")

    assert exc.value.team_code == "1234"


def test_other_errors_pass_through() -> None:
    with pytest.raises(asyncpg.CheckViolationError):
        with _translate_errors("1234"):
            raise asyncpg.CheckViolationError("new row violates check constraint")
