# planserver/conftest.py
import os
import pytest
from fastapi.testclient import TestClient

from planserver.core.config import settings
from planserver.core.database import init_engine, reset_database, get_engine
from planserver.features.projects.service import create_project
from planserver.features.users.service import create_org, create_user, add_org_member
from planserver.models.auth import OrgRole


@pytest.fixture(scope="function", autouse=True)
def test_db(tmp_path, monkeypatch):
    """
    Bind the engine to a fresh database and a temp plans directory per test.

    Uses TEST_DATABASE_URL when set, otherwise a SQLite file under tmp_path.
    """
    monkeypatch.setattr(settings, "PLANS_DIR", str(tmp_path / "plans"))
    monkeypatch.setattr(settings, "AUTH_SECRET_KEY", "test-secret")
    monkeypatch.setattr(settings, "IS_CLOUD", False)
    monkeypatch.setattr(settings, "TRIAL_MAX_PLANS", 10)
    monkeypatch.setattr(settings, "PLAN_NAME_MAX_ATTEMPTS", 10000)
    monkeypatch.setattr(settings, "PLAN_CREATE_RETRIES", 0)

    url = os.getenv("TEST_DATABASE_URL") or f"sqlite:///{tmp_path / 'test.db'}"
    init_engine(url)
    reset_database()
    yield
    get_engine().dispose()


@pytest.fixture
def client():
    from planserver.main import app
    return TestClient(app)


@pytest.fixture
def org():
    return create_org("Acme")


@pytest.fixture
def other_org():
    return create_org("Globex")


@pytest.fixture
def user(org):
    u = create_user("alice@example.com", "Alice")
    add_org_member(org.id, u.id, OrgRole.MEMBER)
    return u


@pytest.fixture
def other_user(org):
    u = create_user("bob@example.com", "Bob")
    add_org_member(org.id, u.id, OrgRole.MEMBER)
    return u


@pytest.fixture
def project(org):
    return create_project(org.id, "planserver")

