import asyncio

import httpx
import pytest
from fastapi.testclient import TestClient

from learnhub.db.base import Base
from learnhub.main import create_app
from learnhub.middleware.rate_limit import AuthRateLimitMiddleware

from conftest import login, make_settings, signup


@pytest.fixture
def limited_client(tmp_path):
    with TestClient(create_app(make_settings(tmp_path, auth_rate_limit=2))) as client:
        yield client


def test_failed_logins_are_throttled(limited_client):
    assert login(limited_client, username="ghost").status_code == 401
    assert login(limited_client, username="ghost").status_code == 401

    blocked = login(limited_client, username="ghost")
    assert blocked.status_code == 429
    assert "Too many attempts" in blocked.json()["error"]


def test_successful_logins_are_not_counted(limited_client):
    assert signup(limited_client).status_code == 201
    for _ in range(4):
        assert login(limited_client).status_code == 200


def test_limits_are_per_endpoint(limited_client):
    login(limited_client, username="ghost")
    login(limited_client, username="ghost")
    assert login(limited_client, username="ghost").status_code == 429

    assert signup(limited_client).status_code == 201


def test_other_routes_are_not_limited(limited_client):
    for _ in range(5):
        assert limited_client.get("/login").status_code == 200
        assert limited_client.get("/api/submissions").status_code == 401


@pytest.mark.asyncio
async def test_concurrent_burst_cannot_outrun_the_limit(tmp_path):
    app = create_app(make_settings(tmp_path, auth_rate_limit=5))
    ctx = app.state.context
    Base.metadata.create_all(bind=ctx.engine)

    transport = httpx.ASGITransport(app=app)
    try:
        async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as client:
            responses = await asyncio.gather(
                *(
                    client.post("/login", json={"username": "ghost", "password": "Wrong-pass1!"})
                    for _ in range(30)
                )
            )
    finally:
        ctx.dispose()

    codes = [r.status_code for r in responses]
    assert codes.count(401) == 5
    assert codes.count(429) == 25


async def _noop_app(scope, receive, send):
    pass


def test_cleanup_keeps_entries_with_requests_in_flight():
    limiter = AuthRateLimitMiddleware(_noop_app, requests=2, window_seconds=10)
    limiter._hits["busy:/login"].append(0.0)
    limiter._hits["idle:/login"].append(0.0)
    limiter._in_flight["busy:/login"] = 1
    limiter._last_cleanup = -100.0

    limiter._maybe_cleanup(100.0)

    assert "busy:/login" in limiter._hits
    assert "idle:/login" not in limiter._hits
