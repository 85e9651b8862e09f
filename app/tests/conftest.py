import os

# Settings are read once; give the app something to boot with before any app import.
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///:memory:")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("CRON_SECRET", "cron-test-secret")

import pytest

# FORCE model registration
import app.models  # noqa

from app.core.attempt_store import InMemoryAttemptStore
from app.services.project_lifecycle import ProjectLifecycle
from app.tests.factories import NOW
from app.tests.fakes import FakeProjectStore, FakeReferenceCodeOracle, RecordingSink


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def lifecycle():
    return ProjectLifecycle()


@pytest.fixture
def store():
    return FakeProjectStore()


@pytest.fixture
def oracle():
    return FakeReferenceCodeOracle()


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def attempts():
    return InMemoryAttemptStore()


# ------------------------------------------------------------------
# API
# ------------------------------------------------------------------


@pytest.fixture
def client(store, oracle, sink, attempts):
    from fastapi.testclient import TestClient

    from app.core import deps
    from app.main import create_app

    app = create_app()
    app.dependency_overrides[deps.get_store] = lambda: store
    app.dependency_overrides[deps.get_oracle] = lambda: oracle
    app.dependency_overrides[deps.get_notifier] = lambda: sink
    app.dependency_overrides[deps.get_attempt_store] = lambda: attempts
    app.dependency_overrides[deps.get_now] = lambda: NOW

    with TestClient(app) as c:
        yield c


def _token(role: str, user_id: str) -> str:
    from app.core.security import create_access_token

    return create_access_token(user_id, {"role": role, "user_id": user_id, "display_name": role})


@pytest.fixture
def staff_headers():
    return {"Authorization": f"Bearer {_token('staff', 'staff-1')}"}


@pytest.fixture
def writer_auth():
    def _make(writer_id) -> dict:
        return {"Authorization": f"Bearer {_token('writer', str(writer_id))}"}

    return _make


# ------------------------------------------------------------------
# DB (only with TEST_DATABASE_URL)
# ------------------------------------------------------------------


@pytest.fixture(scope="function")
def db():
    url = os.getenv("TEST_DATABASE_URL")
    if not url:
        pytest.skip("Set TEST_DATABASE_URL to run DB tests.")

    from sqlalchemy import create_engine
    from sqlalchemy.orm import sessionmaker

    from app.db.base import Base

    engine = create_engine(url, future=True)
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    SessionLocal = sessionmaker(bind=engine, expire_on_commit=False, future=True)

    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()
