"""
Pytest configuration and fixtures.

Every test gets its own SQLite file, submissions directory and app instance,
built from explicit Settings so nothing leaks in from the environment.
"""
import pytest
from fastapi.testclient import TestClient

from learnhub.core.config import Settings
from learnhub.core.context import build_context
from learnhub.db.base import Base
from learnhub.main import create_app

STRONG_PASSWORD = "Abcdef1!"
ADMIN_AUTH = ("admin", "s3cret-admin")


def make_settings(tmp_path, **overrides) -> Settings:
    values = dict(
        database_url=f"sqlite:///{tmp_path / 'test.db'}",
        submissions_dir=str(tmp_path / "submissions"),
        secret_key="test-secret",
        bcrypt_rounds=4,
        admin_user=ADMIN_AUTH[0],
        admin_pass=ADMIN_AUTH[1],
        auth_rate_limit=1000,
        db_pool_size=5,
    )
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return make_settings(tmp_path)


@pytest.fixture
def ctx(settings):
    """Application context with tables created, for service-level tests."""
    context = build_context(settings)
    Base.metadata.create_all(bind=context.engine)
    yield context
    context.dispose()


@pytest.fixture
def db(ctx):
    with ctx.session_factory() as session:
        yield session


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


def signup(client, username="alice", email="alice@x.com", password=STRONG_PASSWORD):
    return client.post("/signup", json={"username": username, "email": email, "password": password})


def login(client, username="alice", password=STRONG_PASSWORD):
    return client.post("/login", json={"username": username, "password": password})
