"""Tests for the page-route session middleware."""

from collections.abc import AsyncGenerator
from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest
from fastapi import FastAPI, Request
from httpx import ASGITransport, AsyncClient

from showerlog.api.middleware import (
    SECURITY_HEADERS,
    USER_ID_HEADER,
    RouteKind,
    SessionMiddleware,
    classify_path,
)
from showerlog.security import create_access_token


@pytest.fixture
def pages_app(session_factory) -> FastAPI:
    """Stand-in for the frontend: each page echoes the identity it received."""
    app = FastAPI()
    app.add_middleware(SessionMiddleware, session_factory=session_factory)

    async def echo(request: Request) -> dict:
        return {
            "state_user_id": str(request.state.user_id) if request.state.user_id else None,
            "header_user_id": request.headers.get(USER_ID_HEADER),
        }

    for path in ("/", "/dashboard", "/settings/profile", "/saved", "/signin", "/about", "/api/ping"):
        app.add_api_route(path, echo, methods=["GET"])
    return app


@pytest.fixture
async def pages(pages_app) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(
        transport=ASGITransport(app=pages_app),
        base_url="http://test",
        follow_redirects=False,
    ) as ac:
        yield ac


def _cookie(token: str) -> dict[str, str]:
    return {"Cookie": f"token={token}"}


def _clears_cookie(response) -> bool:
    set_cookie = response.headers.get("set-cookie", "")
    return set_cookie.startswith('token=""') or set_cookie.startswith("token=;")


@pytest.mark.parametrize(
    ("path", "kind"),
    [
        ("/dashboard", RouteKind.PROTECTED),
        ("/dashboard/thoughts", RouteKind.PROTECTED),
        ("/settings", RouteKind.PROTECTED),
        ("/saved", RouteKind.PROTECTED),
        ("/signin", RouteKind.PUBLIC_AUTH),
        ("/signup", RouteKind.PUBLIC_AUTH),
        ("/reset-password", RouteKind.PUBLIC_AUTH),
        ("/api/thoughts", RouteKind.EXCLUDED),
        ("/health", RouteKind.EXCLUDED),
        ("/static/app.js", RouteKind.EXCLUDED),
        ("/", RouteKind.NEUTRAL),
        ("/about", RouteKind.NEUTRAL),
        ("/dashboards", RouteKind.NEUTRAL),
    ],
)
def test_classify_path(path, kind):
    assert classify_path(path) is kind


async def test_protected_without_token_redirects_to_signin(pages):
    response = await pages.get("/dashboard")
    assert response.status_code == 307
    assert response.headers["location"] == "/signin"


async def test_protected_with_invalid_token_clears_cookie(pages):
    response = await pages.get("/dashboard", headers=_cookie("garbage.token.value"))
    assert response.status_code == 307
    assert response.headers["location"] == "/signin"
    assert _clears_cookie(response)


async def test_protected_with_expired_token_redirects(pages, user):
    issued = datetime.now(timezone.utc) - timedelta(days=30)
    response = await pages.get("/dashboard", headers=_cookie(create_access_token(user.id, now=issued)))
    assert response.status_code == 307
    assert response.headers["location"] == "/signin"


async def test_protected_with_deleted_user_redirects_home(pages):
    response = await pages.get("/settings/profile", headers=_cookie(create_access_token(uuid4())))
    assert response.status_code == 307
    assert response.headers["location"] == "/"
    assert _clears_cookie(response)


async def test_protected_with_valid_session_forwards_identity(pages, user):
    response = await pages.get("/dashboard", headers=_cookie(create_access_token(user.id)))
    assert response.status_code == 200
    assert response.json() == {"state_user_id": str(user.id), "header_user_id": str(user.id)}
    for name, value in SECURITY_HEADERS.items():
        assert response.headers[name] == value


async def test_spoofed_user_id_header_is_replaced(pages, user):
    spoofed = str(uuid4())
    response = await pages.get(
        "/saved",
        headers={**_cookie(create_access_token(user.id)), USER_ID_HEADER: spoofed},
    )
    assert response.json()["header_user_id"] == str(user.id)


async def test_spoofed_user_id_header_is_dropped_on_neutral_pages(pages):
    response = await pages.get("/about", headers={USER_ID_HEADER: str(uuid4())})
    assert response.status_code == 200
    assert response.json() == {"state_user_id": None, "header_user_id": None}


async def test_signed_in_user_is_sent_to_dashboard(pages, user):
    token = create_access_token(user.id)
    for path in ("/signin", "/"):
        response = await pages.get(path, headers=_cookie(token))
        assert response.status_code == 307
        assert response.headers["location"] == "/dashboard"


async def test_public_page_with_stale_token_forwards_and_clears(pages):
    response = await pages.get("/signin", headers=_cookie(create_access_token(uuid4())))
    assert response.status_code == 200
    assert _clears_cookie(response)

    tampered = await pages.get("/", headers=_cookie("bad.token.here"))
    assert tampered.status_code == 200
    assert _clears_cookie(tampered)


async def test_public_page_without_token_is_untouched(pages):
    response = await pages.get("/signin")
    assert response.status_code == 200
    assert "set-cookie" not in response.headers
    assert "X-Frame-Options" not in response.headers


async def test_neutral_page_gets_security_headers(pages):
    response = await pages.get("/about")
    assert response.headers["X-Content-Type-Options"] == "nosniff"


async def test_excluded_paths_pass_through(pages):
    response = await pages.get("/api/ping", headers=_cookie("garbage.token.value"))
    assert response.status_code == 200
    assert "set-cookie" not in response.headers
    assert "X-Frame-Options" not in response.headers


async def test_lookup_failure_fails_closed(user):
    def broken_session_factory():
        raise RuntimeError("database unavailable")

    app = FastAPI()
    app.add_middleware(SessionMiddleware, session_factory=broken_session_factory)

    @app.get("/dashboard")
    async def dashboard() -> dict:
        return {"ok": True}

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        response = await ac.get("/dashboard", headers=_cookie(create_access_token(user.id)))

    assert response.status_code == 307
    assert response.headers["location"] == "/"
    assert _clears_cookie(response)
