import os
import tempfile

# configuration is read at import time, so it has to be in place first
_tmp = tempfile.mkdtemp(prefix="dashboard-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{_tmp}/test.db"
os.environ["JWT_SECRET"] = "test-secret-key"
os.environ["HASH_TIME_COST"] = "1"
os.environ["HASH_MEMORY_COST"] = "1024"
os.environ["RATE_LIMIT_REQUESTS"] = "100000"
os.environ["MAIL_SENDER"] = ""
os.environ["MAIL_RECIPIENTS"] = ""
os.environ.pop("JWT_EXPIRE_MINUTES", None)
os.environ.pop("PEPPER", None)

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session, SQLModel


@pytest.fixture
def db_engine():
    from Storage.database import engine, init_db
    init_db()
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture
def session(db_engine):
    with Session(db_engine) as s:
        yield s


@pytest.fixture
def app(db_engine):
    from main import app
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def login(client):
    """Register a user over HTTP and return its bearer header."""
    def _login(username: str, secret: str, role: str = "viewer") -> dict:
        r = client.post("/register", json={"username": username, "secret": secret, "role": role})
        assert r.status_code == 201, r.text
        r = client.post("/login", json={"username": username, "secret": secret})
        assert r.status_code == 200, r.text
        return {"Authorization": f"Bearer {r.json()['token']}"}
    return _login


@pytest.fixture
def admin_headers(login) -> dict:
    return login("alice", "pw1", "admin")


@pytest.fixture
def viewer_headers(login) -> dict:
    return login("bob", "pw2", "viewer")
