"""Tests for the JWKS-backed credential verifier."""

import base64
import time

import anyio
import pytest
from jose import jwt

from app.core.auth import CredentialVerifier
from app.core.exceptions import UnauthorizedError

ISSUER = "https://auth.test.local"


def oct_key(kid: str, secret: str) -> dict:
    k = base64.urlsafe_b64encode(secret.encode()).rstrip(b"=").decode()
    return {"kty": "oct", "kid": kid, "k": k, "alg": "HS256"}


def make_token(secret: str, kid: str = "k1", **claims) -> str:
    payload = {"sub": "user-1", "iss": ISSUER, "exp": int(time.time()) + 300}
    payload.update(claims)
    payload = {k: v for k, v in payload.items() if v is not None}
    return jwt.encode(payload, secret, algorithm="HS256", headers={"kid": kid})


class CountingVerifier(CredentialVerifier):
    """Serves key sets from a list instead of the network."""

    def __init__(self, key_sets, audience=None):
        super().__init__(ISSUER, f"{ISSUER}/.well-known/jwks", audience=audience, algorithms=["HS256"])
        self.key_sets = list(key_sets)
        self.fetches = 0

    async def _fetch_jwks(self):
        self.fetches += 1
        await anyio.sleep(0.01)
        return self.key_sets[min(self.fetches, len(self.key_sets)) - 1]


SECRET = "first-signing-secret-for-tests"
ROTATED = "second-signing-secret-for-tests"


@pytest.mark.anyio
async def test_valid_token() -> None:
    verifier = CountingVerifier([{"keys": [oct_key("k1", SECRET)]}])

    claims = await verifier.verify(make_token(SECRET, email="a@example.com"))

    assert claims["sub"] == "user-1"
    assert claims["email"] == "a@example.com"


@pytest.mark.anyio
async def test_expired_token() -> None:
    verifier = CountingVerifier([{"keys": [oct_key("k1", SECRET)]}])

    with pytest.raises(UnauthorizedError) as exc:
        await verifier.verify(make_token(SECRET, exp=int(time.time()) - 60))
    assert exc.value.detail == "Token expired"


@pytest.mark.anyio
async def test_wrong_issuer_and_bad_signature() -> None:
    verifier = CountingVerifier([{"keys": [oct_key("k1", SECRET)]}])

    with pytest.raises(UnauthorizedError):
        await verifier.verify(make_token(SECRET, iss="https://evil.example.com"))
    with pytest.raises(UnauthorizedError):
        await verifier.verify(make_token("not-the-right-secret-at-all"))


@pytest.mark.anyio
async def test_garbage_and_missing_subject() -> None:
    verifier = CountingVerifier([{"keys": [oct_key("k1", SECRET)]}])

    with pytest.raises(UnauthorizedError):
        await verifier.verify("not-a-jwt")
    with pytest.raises(UnauthorizedError):
        await verifier.verify(make_token(SECRET, sub=None))


@pytest.mark.anyio
async def test_audience_checked_only_when_configured() -> None:
    keys = {"keys": [oct_key("k1", SECRET)]}

    assert await CountingVerifier([keys]).verify(make_token(SECRET, aud="other-app"))

    strict = CountingVerifier([keys], audience="applyform")
    assert await strict.verify(make_token(SECRET, aud="applyform"))
    with pytest.raises(UnauthorizedError):
        await strict.verify(make_token(SECRET, aud="other-app"))


@pytest.mark.anyio
async def test_unknown_kid_refreshes_once() -> None:
    verifier = CountingVerifier([
        {"keys": [oct_key("k1", SECRET)]},
        {"keys": [oct_key("k1", SECRET), oct_key("k2", ROTATED)]},
    ])
    await verifier.verify(make_token(SECRET))
    assert verifier.fetches == 1

    claims = await verifier.verify(make_token(ROTATED, kid="k2"))

    assert claims["sub"] == "user-1"
    assert verifier.fetches == 2


@pytest.mark.anyio
async def test_concurrent_first_use_fetches_once() -> None:
    verifier = CountingVerifier([{"keys": [oct_key("k1", SECRET)]}])
    token = make_token(SECRET)

    async with anyio.create_task_group() as tg:
        for _ in range(5):
            tg.start_soon(verifier.verify, token)

    assert verifier.fetches == 1
