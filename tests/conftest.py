import os
import tempfile
import uuid

# must be set before todolist.config is imported
_DB_DIR = tempfile.mkdtemp(prefix="todolist-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_DB_DIR, 'test.db')}"
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from fastapi.testclient import TestClient
from todolist.main import app
from todolist.database import SessionLocal, Base, engine

PASSWORD = "secret123"


# Recreate all tables for each test
@pytest.fixture(autouse=True)
def setup_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return TestClient(app)


def unique_email(prefix: str = "user") -> str:
    return f"{prefix}_{uuid.uuid4().hex[:8]}@example.com"


@pytest.fixture
def make_client():
    """Return a factory producing TestClients that are registered and carry a session cookie."""

    def _make(email=None, password=PASSWORD):
        c = TestClient(app)
        r = c.post("/register", json={"email": email or unique_email(), "password": password})
        assert r.status_code == 201, r.text
        return c

    return _make
