"""Shared fixtures: bundled metadata, an in-memory store and a test client."""

import pytest
from fastapi.testclient import TestClient

from accesshub.api.app import create_app
from accesshub.auth.password import PasswordService
from accesshub.config import Settings
from accesshub.metadata import MetadataLoader
from accesshub.persistence import MemoryDocumentStore


@pytest.fixture(scope="session")
def metadata():
    loader = MetadataLoader()
    loader.load_all()
    return loader


@pytest.fixture(scope="session")
def passwords():
    """Argon2 with minimal cost so tests stay fast."""
    return PasswordService(memory_cost=1024, time_cost=1, parallelism=1)


@pytest.fixture
def store(metadata):
    return MemoryDocumentStore(metadata)


@pytest.fixture
def settings():
    return Settings(environment="test", disable_auth=True, log_level="WARNING")


@pytest.fixture
def client(settings, passwords):
    """Client for an app with permission checks disabled."""
    app = create_app(settings, passwords=passwords)
    with TestClient(app) as client:
        yield client


@pytest.fixture
def secured_client(passwords):
    """Client for an app that enforces permissions."""
    app = create_app(
        Settings(environment="test", disable_auth=False, log_level="WARNING"),
        passwords=passwords,
    )
    with TestClient(app) as client:
        yield client
