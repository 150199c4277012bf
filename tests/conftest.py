"""
Pytest configuration and fixtures for the content platform tests.
"""

import os
import tempfile
from typing import Callable, Dict, Generator

# Configure the application before anything imports config
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["DATA_DIR"] = tempfile.mkdtemp(prefix="content-platform-tests-")
os.environ["SEED_SAMPLE_CONTENT"] = "false"
os.environ["BCRYPT_ROUNDS"] = "4"

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from config import DEFAULT_ADMIN_EMAIL, DEFAULT_ADMIN_PASSWORD
from core.database import SessionLocal, engine as db_engine
from core.dependencies import get_artifact_store
from models.base import Base
from utils.artifact_store import ArtifactStore
from utils.entitlement_engine import EntitlementEngine


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture(autouse=True)
def reset_database() -> Generator[None, None, None]:
    """Give every test an empty schema."""
    Base.metadata.drop_all(bind=db_engine)
    Base.metadata.create_all(bind=db_engine)
    yield


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Provide a database session for tests."""
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def engine(db: Session) -> EntitlementEngine:
    return EntitlementEngine(db)


@pytest.fixture
def make_content(engine: EntitlementEngine) -> Callable:
    """Factory creating catalog items through the entitlement engine."""

    def _make(title: str = "Biology Form 2", price: float = 0, **extra):
        data = {
            "title": title,
            "description": "Notes and revision questions",
            "subject": "Biology",
            "price": price,
            "type": "pdf",
            "lessons": 10,
        }
        data.update(extra)
        return engine.create_content(data)

    return _make


@pytest.fixture
def artifact_store(tmp_path) -> ArtifactStore:
    return ArtifactStore(tmp_path / "artifacts")


# =============================================================================
# Application Fixtures
# =============================================================================

@pytest.fixture
def client(artifact_store: ArtifactStore) -> Generator[TestClient, None, None]:
    """Provide an HTTP client; startup checks create the bootstrap admin."""
    from app import app

    app.dependency_overrides[get_artifact_store] = lambda: artifact_store
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def bearer(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def register(client: TestClient) -> Callable:
    """Factory registering a student and returning its auth headers."""

    def _register(
        email: str, password: str = "secret123", name: str = "Student"
    ) -> Dict[str, str]:
        response = client.post(
            "/api/auth/register",
            json={"name": name, "email": email, "password": password},
        )
        assert response.status_code == 201, response.text
        return bearer(response.json()["token"])

    return _register


@pytest.fixture
def admin_headers(client: TestClient) -> Dict[str, str]:
    response = client.post(
        "/api/auth/login",
        json={"email": DEFAULT_ADMIN_EMAIL, "password": DEFAULT_ADMIN_PASSWORD},
    )
    assert response.status_code == 200, response.text
    return bearer(response.json()["token"])
