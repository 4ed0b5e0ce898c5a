"""
Shared fixtures for gateway tests.
"""

from typing import List, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import Request
from fastapi.responses import JSONResponse, RedirectResponse
from fastapi.testclient import TestClient

from gateway.app.auth.dependencies import get_auth_client_factory
from gateway.app.config import Settings, get_settings
from gateway.app.main import create_app
from gateway.app.models import UserProfile


class FakeAuthClient:
    """
    Auth client double. Each operation can be made to fail by listing its
    name in `fail`.
    """

    def __init__(self, user: Optional[UserProfile] = None, fail=()):
        self.user_profile = user
        self.fail = set(fail)
        self.calls: List[tuple] = []

    def _record(self, operation: str, **options):
        self.calls.append((operation, options))
        if operation in self.fail:
            raise RuntimeError(f"{operation} exploded")

    async def login(self, request: Request, return_to: Optional[str] = None):
        self._record("login", return_to=return_to)
        return RedirectResponse(url="https://auth.example.com/login", status_code=302)

    async def callback(self, request: Request):
        self._record("callback")
        return RedirectResponse(url="/profile?success=true", status_code=302)

    async def user(self, request: Request):
        self._record("user")
        return JSONResponse(content=self.user_profile.model_dump())

    async def logout(self, request: Request, return_to: Optional[str] = None):
        self._record("logout", return_to=return_to)
        return RedirectResponse(url=return_to or "/", status_code=302)

    async def get_user_data(self, request: Request) -> UserProfile:
        self._record("get_user_data")
        if self.user_profile is None:
            raise RuntimeError("not logged in")
        return self.user_profile


class RecordingFactory:
    """Builds a new FakeAuthClient per call and remembers every instance."""

    def __init__(self, user: Optional[UserProfile] = None, fail=(), fail_on_create: bool = False):
        self.user = user
        self.fail = fail
        self.fail_on_create = fail_on_create
        self.instances: List[FakeAuthClient] = []

    def __call__(self) -> FakeAuthClient:
        if self.fail_on_create:
            raise RuntimeError("cannot build client")
        client = FakeAuthClient(user=self.user, fail=self.fail)
        self.instances.append(client)
        return client


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        _env_file=None,
        BASE_URL="http://localhost:3000",
        AUTH_ORGANIZATION_ID="org-123",
        AUTH_SECRET="test-secret-1234567890",
        AUTH_BASE_URL="https://auth.example.com",
        AUTH_DEBUG=True,
    )


@pytest.fixture
def test_user() -> UserProfile:
    return UserProfile(email="ada@example.com", gravatar="https://gravatar.example.com/avatar/ada")


@pytest.fixture
def make_client(test_settings):
    """
    Build a TestClient whose routes use the given auth client factory.

    Redirects are not followed so tests can check where they point.
    """
    def _make(factory) -> TestClient:
        app = create_app()
        app.dependency_overrides[get_settings] = lambda: test_settings
        app.dependency_overrides[get_auth_client_factory] = lambda: factory
        return TestClient(app, follow_redirects=False)

    return _make


def make_request(query_string: bytes = b"", session: Optional[dict] = None) -> Request:
    """Build a bare Starlette request carrying a session dict."""
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/api/auth/callback",
        "query_string": query_string,
        "headers": [],
        "session": {} if session is None else session,
    }
    return Request(scope)


def mock_response(status_code: int = 200, json_data=None) -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    response.is_success = 200 <= status_code < 300
    response.headers = {"content-type": "application/json"}
    response.json.return_value = json_data if json_data is not None else {}
    return response


def mock_httpx_client(get_response=None, post_response=None) -> MagicMock:
    """httpx.AsyncClient replacement usable as an async context manager."""
    client = MagicMock()
    client.__aenter__ = AsyncMock(return_value=client)
    client.__aexit__ = AsyncMock(return_value=None)
    client.get = AsyncMock(return_value=get_response)
    client.post = AsyncMock(return_value=post_response)
    return client
