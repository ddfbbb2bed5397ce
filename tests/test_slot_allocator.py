"""Tests for slot evaluation (capacity, color and job per team)."""

import pytest

from app.core.exceptions import ConflictError, NotFoundError
from app.services.slot_allocator import SlotAllocator, SlotVerdict, evaluate_slot, raise_for_verdict


def test_empty_team_accepts_any_slot() -> None:
    assert evaluate_slot([], "red", "attacker") == SlotVerdict.OK


def test_color_taken(store) -> None:
    occupants = [store.seed_member("1234", "red", "attacker", "G1")]
    assert evaluate_slot(occupants, "red", "defender") == SlotVerdict.COLOR_TAKEN


def test_job_taken(store) -> None:
    occupants = [store.seed_member("1234", "red", "attacker", "G1")]
    assert evaluate_slot(occupants, "blue", "attacker") == SlotVerdict.JOB_TAKEN


def test_color_checked_before_job(store) -> None:
    occupants = [store.seed_member("1234", "red", "attacker", "G1")]
    assert evaluate_slot(occupants, "red", "attacker") == SlotVerdict.COLOR_TAKEN


def test_full_team_reported_before_color(store) -> None:
    occupants = [
        store.seed_member("1234", "red", "attacker", "G1"),
        store.seed_member("1234", "green", "defender", "G2"),
        store.seed_member("1234", "blue", "supporter", "G3"),
    ]
    assert evaluate_slot(occupants, "red", "attacker") == SlotVerdict.TEAM_FULL


def test_excluded_member_does_not_block_itself(store) -> None:
    me = store.seed_member("1234", "red", "attacker", "G1")
    other = store.seed_member("1234", "green", "defender", "G2")
    occupants = [me, other]

    assert evaluate_slot(occupants, "red", "attacker", excluding_member_id=me.id) == SlotVerdict.OK
    assert evaluate_slot(occupants, "green", "attacker", excluding_member_id=me.id) == SlotVerdict.COLOR_TAKEN


def test_edit_inside_full_team_is_not_capacity_blocked(store) -> None:
    me = store.seed_member("1234", "red", "attacker", "G1")
    occupants = [
        me,
        store.seed_member("1234", "green", "defender", "G2"),
        store.seed_member("1234", "blue", "supporter", "G3"),
    ]
    assert evaluate_slot(occupants, "red", "attacker", excluding_member_id=me.id) == SlotVerdict.OK


def test_raise_for_verdict_names_the_field() -> None:
    with pytest.raises(ConflictError) as exc:
        raise_for_verdict(SlotVerdict.JOB_TAKEN, "1234", "red", "attacker")
    assert exc.value.field == "job"
    assert "attacker" in exc.value.detail

    with pytest.raises(ConflictError) as exc:
        raise_for_verdict(SlotVerdict.TEAM_FULL, "1234")
    assert exc.value.field == "team_code"

    with pytest.raises(NotFoundError):
        raise_for_verdict(SlotVerdict.TEAM_NOT_FOUND, "9999")

    raise_for_verdict(SlotVerdict.OK, "1234")


@pytest.mark.anyio
async def test_check_slot_against_store(store) -> None:
    store.seed_member("1234", "red", "attacker", "G1")
    allocator = SlotAllocator(store)

    assert await allocator.check_slot("9999", "red", "attacker") == SlotVerdict.TEAM_NOT_FOUND
    assert await allocator.check_slot("1234", "red", "defender") == SlotVerdict.COLOR_TAKEN
    assert await allocator.check_slot("1234", "green", "defender") == SlotVerdict.OK

    with pytest.raises(ConflictError) as exc:
        await allocator.require_slot("1234", "red", "defender")
    assert exc.value.detail == "The color 'red' is already taken in team 1234."
