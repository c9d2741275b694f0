"""Pytest configuration and fixtures."""

import os

# Settings are read at import time by showerlog.main
os.environ["DATABASE_URL"] = "sqlite+aiosqlite://"
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ["ENVIRONMENT"] = "staging"

import json
from collections.abc import AsyncGenerator
from typing import Any

import httpx
import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from showerlog.db.base import Base
from showerlog.db.models import User
from showerlog.db.session import build_session_factory
from showerlog.main import app as fastapi_app
from showerlog.security import create_access_token, hash_password
from showerlog.services.ai_service import AIService, get_ai_service
from showerlog.services.email_service import EmailDeliveryError, get_email_service

TEST_PASSWORD = "secret123"


class FakeMailer:
    """Records the tokens that would have been emailed."""

    def __init__(self):
        self.verification: list[tuple[str, str]] = []
        self.reset: list[tuple[str, str]] = []
        self.fail = False

    async def send_verification_email(self, to_email: str, token: str) -> None:
        if self.fail:
            raise EmailDeliveryError("smtp down")
        self.verification.append((to_email, token))

    async def send_password_reset_email(self, to_email: str, token: str) -> None:
        if self.fail:
            raise EmailDeliveryError("smtp down")
        self.reset.append((to_email, token))


class AIStub:
    """
    Canned responses for the AI service, served through httpx.MockTransport.

    ``responses`` maps a path to ``(status_code, json_body)``; every request
    is recorded in ``requests`` as ``(path, parsed_body)``.
    """

    def __init__(self):
        self.responses: dict[str, tuple[int, Any]] = {}
        self.requests: list[tuple[str, Any]] = []

    def handle(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content) if request.content else None
        self.requests.append((request.url.path, body))
        status_code, payload = self.responses.get(request.url.path, (404, {"error": "not found"}))
        return httpx.Response(status_code, json=payload)

    def service(self) -> AIService:
        return AIService("http://ai.test", transport=httpx.MockTransport(self.handle))


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
def mailer() -> FakeMailer:
    return FakeMailer()


@pytest.fixture
def ai_stub() -> AIStub:
    return AIStub()


@pytest.fixture
def app(session_factory, mailer, ai_stub):
    # ASGITransport does not run the lifespan, so install the session factory here
    fastapi_app.state.session_factory = session_factory
    fastapi_app.dependency_overrides[get_email_service] = lambda: mailer
    fastapi_app.dependency_overrides[get_ai_service] = ai_stub.service
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client for testing FastAPI endpoints."""
    async with AsyncClient(
        transport=ASGITransport(app=app, raise_app_exceptions=False),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.fixture
def make_user(session_factory):
    """Insert a user directly; verified unless told otherwise."""

    async def _make_user(
        email: str = "user@example.com",
        password: str = TEST_PASSWORD,
        *,
        verified: bool = True,
        name: str | None = "Test User",
        **fields,
    ) -> User:
        async with session_factory() as session:
            user = User(
                email=email,
                name=name,
                password_hash=hash_password(password),
                email_verified=verified,
                **fields,
            )
            session.add(user)
            await session.commit()
            await session.refresh(user)
            return user

    return _make_user


def auth_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


@pytest.fixture
async def user(make_user) -> User:
    return await make_user()


@pytest.fixture
def headers(user) -> dict[str, str]:
    return auth_headers(user)


@pytest.fixture
def headers_for():
    """Bearer headers for any user, for tests that act as several users."""
    return auth_headers
