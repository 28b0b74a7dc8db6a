"""
Shared fixtures for the Tubely unit tests.
"""

import os
from uuid import UUID, uuid4

# tubely.main builds a module-level app from env settings on import;
# keep it off the local disk backend.
os.environ.setdefault("STORAGE_BACKEND", "registry")
os.environ.setdefault("JWT_SECRET", "test-jwt-secret")

import pytest

from tubely.infrastructure.auth.jwt import JWTIdentityExchange, issue_access_token
from tubely.infrastructure.records.repository import InMemoryVideoRecordStore

from fakes import TEST_JWT_SECRET


@pytest.fixture
def owner_id() -> UUID:
    return uuid4()


@pytest.fixture
def identity() -> JWTIdentityExchange:
    return JWTIdentityExchange(secret_key=TEST_JWT_SECRET)


@pytest.fixture
def owner_token(owner_id) -> str:
    return issue_access_token(owner_id, TEST_JWT_SECRET)


@pytest.fixture
def stranger_token() -> str:
    return issue_access_token(uuid4(), TEST_JWT_SECRET)


@pytest.fixture
def record_store() -> InMemoryVideoRecordStore:
    return InMemoryVideoRecordStore()


@pytest.fixture
def video(record_store, owner_id):
    """A draft video owned by owner_id."""
    return record_store.create(owner_id=owner_id, title="Lake swim")


@pytest.fixture
def staging_dir(tmp_path):
    return tmp_path / "staging"