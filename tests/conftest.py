"""
Pytest configuration and shared fixtures.

Provides:
- A file-backed SQLite database per test (separate connections per session,
  foreign keys enforced) with the schema created
- A session, repositories and a transaction executor bound to that session
- A FastAPI TestClient whose session dependency opens sessions on the
  per-test database
"""

from __future__ import annotations

import os
import sys
from collections.abc import Generator
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]

# Add project root to path for imports
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Set test environment variables before importing the app
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("OBSERVABILITY_STRUCTURED_LOGS", "false")
os.environ.setdefault("METRICS_TOKEN", "test-metrics-token")
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")

import pytest  # noqa: E402 (import after env setup)
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.engine import Engine  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402

from schoolhub.api.mappings import MAPPING_PROFILES  # noqa: E402
from schoolhub.core.db import build_engine, get_db_session  # noqa: E402
from schoolhub.core.mapping import EntityMapper  # noqa: E402
from schoolhub.core.transaction import TransactionExecutor  # noqa: E402
from schoolhub.db.models import Base  # noqa: E402
from schoolhub.main import create_app  # noqa: E402
from schoolhub.repos import (  # noqa: E402
    BranchRepository,
    CustomerRepository,
    TeacherRepository,
)

API = "/api/v1"


# ============================================================================
# Test Database Setup
# ============================================================================


@pytest.fixture
def engine(tmp_path: Path) -> Generator[Engine]:
    engine = build_engine(f"sqlite:///{tmp_path / 'schoolhub-test.db'}")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, expire_on_commit=False)


@pytest.fixture
def db_session(session_factory: sessionmaker) -> Generator[Session]:
    session = session_factory()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def executor(db_session: Session) -> TransactionExecutor:
    return TransactionExecutor(db_session)


@pytest.fixture
def branch_repo(db_session: Session) -> BranchRepository:
    return BranchRepository(db_session)


@pytest.fixture
def customer_repo(db_session: Session) -> CustomerRepository:
    return CustomerRepository(db_session)


@pytest.fixture
def teacher_repo(db_session: Session) -> TeacherRepository:
    return TeacherRepository(db_session)


@pytest.fixture
def mapper() -> EntityMapper:
    return EntityMapper(MAPPING_PROFILES)


# ============================================================================
# API Client
# ============================================================================


@pytest.fixture
def app(session_factory: sessionmaker):
    app = create_app()

    def _override_db_session() -> Generator[Session]:
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db_session] = _override_db_session
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app) -> Generator[TestClient]:
    with TestClient(app) as test_client:
        yield test_client


# ============================================================================
# Payload Factories
# ============================================================================


def teacher_payload(**overrides) -> dict:
    payload = {
        "full_name": "Alice Nguyen",
        "email": "alice@example.com",
        "phone": "0123456789",
        "customer_id": None,
    }
    payload.update(overrides)
    return payload


def customer_payload(**overrides) -> dict:
    payload = {
        "full_name": "Binh Tran",
        "email": "binh@example.com",
        "phone": "0987654321",
        "branch_id": None,
    }
    payload.update(overrides)
    return payload


def branch_payload(**overrides) -> dict:
    payload = {"name": "Downtown", "address": "12 Main Street", "phone": "0281234567"}
    payload.update(overrides)
    return payload
