"""Shared fixtures: in-memory collaborators wired into the app."""

import os

# Required settings must exist before app.core.config is imported
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-service-role-key")
os.environ.setdefault("AUTH_ISSUER_URL", "https://auth.test.local")

import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.core.auth import get_verifier
from app.core.store import get_store
from app.services.media_service import MediaTracker, get_media_tracker
from app.services.members_service import MembersService
from tests.fakes import FakeStore, FakeObjectStore, StubVerifier


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def object_store() -> FakeObjectStore:
    return FakeObjectStore()


@pytest.fixture
def media(object_store) -> MediaTracker:
    return MediaTracker(object_store, timeout=2.0)


@pytest.fixture
def service(store, media) -> MembersService:
    return MembersService(store, media)


@pytest.fixture
def client(store, media):
    # No context manager: the lifespan (Postgres pool) is not started
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_media_tracker] = lambda: media
    app.dependency_overrides[get_verifier] = lambda: StubVerifier()
    yield TestClient(app)
    app.dependency_overrides.clear()
