"""Tests for the HTTP surface and error rendering."""

from app.services.slot_allocator import SlotAllocator
from tests.fakes import auth

JOIN_FORM = {
    "teamCode": "1234",
    "color": "red",
    "job": "attacker",
    "gameAccountId": "G1",
    "nickname": "A",
    "contactId": "10001",
}


def join(client, subject: str = "sub-1", **overrides):
    return client.post("/api/teams/join", data={**JOIN_FORM, **overrides}, headers=auth(subject))


# ==================== Health ====================

def test_root_endpoint(client) -> None:
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["status"] == "running"


def test_health_check(client) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


# ==================== Teams ====================

def test_create_and_check_team(client) -> None:
    response = client.post("/api/teams/create", data={"teamCode": "1234", "teamName": "Alpha"})
    assert response.status_code == 201
    assert response.json()["code"] == "1234"

    response = client.post("/api/teams/check", data={"teamCode": "1234"})
    assert response.status_code == 200
    assert response.json()["name"] == "Alpha"
    assert response.json()["members"] == []


def test_create_duplicate_team(client, store) -> None:
    store.seed_team("1234", "Alpha")

    response = client.post("/api/teams/create", data={"teamCode": "1234", "teamName": "Beta"})

    assert response.status_code == 409
    body = response.json()
    assert body["success"] is False
    assert body["error_code"] == "CONFLICT"
    assert body["details"] == {"field": "team_code"}


def test_invalid_team_code_is_400(client) -> None:
    response = client.post("/api/teams/check", data={"teamCode": "12a4"})

    assert response.status_code == 400
    body = response.json()
    assert body["error_code"] == "INVALID_INPUT"
    assert body["details"] == {"field": "team_code"}
    assert body["error"] == "Invalid team code (must be 4 digits)."


def test_unknown_team_is_404(client) -> None:
    response = client.get("/api/teams/4321")
    assert response.status_code == 404
    assert response.json()["error"] == "Team with code 4321 not found."


def test_check_refused_while_paused(client, store) -> None:
    store.seed_team("1234")
    store.settings["collection_paused"] = "true"

    assert client.post("/api/teams/check", data={"teamCode": "1234"}).status_code == 403
    assert client.post("/api/teams/create", data={"teamCode": "5678", "teamName": "B"}).status_code == 403
    # Direct roster lookup stays available
    assert client.get("/api/teams/1234").status_code == 200


# ==================== Join ====================

def test_join_requires_authentication(client, store) -> None:
    store.seed_team("1234")

    response = client.post("/api/teams/join", data=JOIN_FORM)

    assert response.status_code == 401
    assert response.json()["error_code"] == "UNAUTHORIZED"


def test_expired_token_is_401(client, store) -> None:
    store.seed_team("1234")
    response = join(client, subject="expired")
    assert response.status_code == 401
    assert response.json()["error"] == "Token expired"


def test_join_via_cookie(client, store) -> None:
    store.seed_team("1234")
    client.cookies.set("access_token", "sub-cookie")

    response = client.post("/api/teams/join", data=JOIN_FORM)

    assert response.status_code == 201
    assert response.json()["member"]["external_subject_id"] == "sub-cookie"


def test_join_and_read_back(client, store) -> None:
    store.seed_team("1234", "Alpha")

    response = join(client)
    assert response.status_code == 201
    assert response.json()["member"]["game_account_id"] == "G1"

    me = client.get("/api/members/me", headers=auth("sub-1")).json()
    assert me["member"]["team_code"] == "1234"

    roster = client.get("/api/teams/1234").json()
    assert [m["color"] for m in roster["members"]] == ["red"]


def test_me_when_not_registered(client) -> None:
    response = client.get("/api/members/me", headers=auth("nobody"))
    assert response.status_code == 200
    assert response.json()["member"] is None


def test_join_validation_names_field(client, store) -> None:
    store.seed_team("1234")

    response = join(client, color="purple")
    assert response.status_code == 400
    assert response.json()["details"] == {"field": "color"}

    response = join(client, contactId="01234")
    assert response.json()["details"] == {"field": "contact_id"}

    data = dict(JOIN_FORM)
    del data["nickname"]
    response = client.post("/api/teams/join", data=data, headers=auth("sub-1"))
    assert response.json()["details"] == {"field": "nickname"}
    assert store.members == {}


def test_join_unknown_team(client) -> None:
    assert join(client).status_code == 404


def test_join_taken_color(client, store) -> None:
    store.seed_member("1234", "red", "defender", "G9")

    response = join(client)

    assert response.status_code == 409
    assert response.json()["error"] == "The color 'red' is already taken in team 1234."


def test_join_with_avatar(client, store, object_store) -> None:
    store.seed_team("1234")

    response = client.post(
        "/api/teams/join",
        data=JOIN_FORM,
        files={"avatarFile": ("me.png", b"\x89PNG data", "image/png")},
        headers=auth("sub-1"),
    )

    assert response.status_code == 201
    assert response.json()["member"]["avatar_url"].startswith(object_store.public_url_base)
    assert len(object_store.objects) == 1


def test_join_conflict_at_write_leaves_no_avatar(client, store, object_store, monkeypatch) -> None:
    store.seed_member("1234", "red", "defender", "G9")

    async def skip_precheck(*args, **kwargs):
        return None

    # Pre-check passes, the unique constraint catches the duplicate color
    monkeypatch.setattr(SlotAllocator, "require_slot", skip_precheck)

    response = client.post(
        "/api/teams/join",
        data=JOIN_FORM,
        files={"avatarFile": ("me.png", b"\x89PNG data", "image/png")},
        headers=auth("sub-1"),
    )

    assert response.status_code == 409
    assert response.json()["details"] == {"field": "color"}
    assert object_store.objects == {}
    assert len(object_store.deleted) == 1


def test_join_with_oversized_avatar(client, store, media) -> None:
    store.seed_team("1234")
    media.max_size = 4

    response = client.post(
        "/api/teams/join",
        data=JOIN_FORM,
        files={"avatarFile": ("me.png", b"0123456789", "image/png")},
        headers=auth("sub-1"),
    )

    assert response.status_code == 400
    assert response.json()["details"] == {"field": "avatar"}


def test_join_while_paused(client, store) -> None:
    store.seed_team("1234")
    store.settings["collection_paused"] = "true"

    response = join(client)

    assert response.status_code == 403
    assert response.json()["error_code"] == "FORBIDDEN"


# ==================== Own row ====================

def test_edit_own_row(client, store) -> None:
    store.seed_member("1234", "red", "attacker", "G1", external_subject_id="sub-1", nickname="A")

    response = client.patch("/api/members/G1", data={"nickname": "B"}, headers=auth("sub-1"))
    assert response.status_code == 200
    assert response.json()["changed"] is True
    assert response.json()["member"]["nickname"] == "B"

    response = client.patch("/api/members/G1", data={"nickname": "B"}, headers=auth("sub-1"))
    assert response.json()["changed"] is False


def test_edit_someone_elses_row_is_forbidden(client, store) -> None:
    store.seed_member("1234", "red", "attacker", "G1", external_subject_id="sub-1")
    store.seed_member("1234", "green", "defender", "G2", external_subject_id="sub-2")

    response = client.patch("/api/members/G2", data={"nickname": "X"}, headers=auth("sub-1"))
    assert response.status_code == 403


def test_owner_cannot_move_team(client, store) -> None:
    store.seed_member("1234", "red", "attacker", "G1", external_subject_id="sub-1")
    store.seed_team("5678")

    response = client.patch("/api/members/G1", data={"teamCode": "5678"}, headers=auth("sub-1"))
    assert response.status_code == 403


def test_delete_last_member_removes_team(client, store) -> None:
    store.seed_team("1234")
    join(client)

    response = client.delete("/api/members/G1", headers=auth("sub-1"))
    assert response.status_code == 204

    # Background cleanup has run by the time the test client returns
    assert client.get("/api/teams/1234").status_code == 404
    assert client.get("/api/members/me", headers=auth("sub-1")).json()["member"] is None


def test_delete_someone_elses_row_is_404(client, store) -> None:
    store.seed_member("1234", "red", "attacker", "G1", external_subject_id="sub-1")
    store.seed_member("1234", "green", "defender", "G2", external_subject_id="sub-2")

    response = client.delete("/api/members/G2", headers=auth("sub-1"))

    assert response.status_code == 404
    assert len(store.members) == 2


# ==================== Settings ====================

def test_registration_status(client, store) -> None:
    assert client.get("/api/settings").json()["collection_paused"] is False
    store.settings["collection_paused"] = "true"
    assert client.get("/api/settings").json()["collection_paused"] is True
