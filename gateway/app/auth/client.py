"""
CentralAuth client for the gateway routes.

The routes never talk to CentralAuth themselves: each request builds a new
client with create_auth_client() and hands the request to one of its
operations. The client keeps per-login values (state, PKCE verifier,
return-to URL, session token) in the signed session cookie, so nothing
about a user lives in process memory.
"""

import base64
import hashlib
import logging
import secrets
from typing import Any, Callable, Dict, Optional, Protocol
from urllib.parse import urlencode

import httpx
from fastapi import Request, Response
from fastapi.responses import JSONResponse, RedirectResponse

from ..config import Settings
from ..models import UserProfile


logger = logging.getLogger(__name__)

HTTP_TIMEOUT = 10.0

SESSION_STATE_KEY = "centralauth_state"
SESSION_VERIFIER_KEY = "centralauth_code_verifier"
SESSION_RETURN_TO_KEY = "centralauth_return_to"
SESSION_TOKEN_KEY = "centralauth_session_token"

SESSION_KEYS = (
    SESSION_STATE_KEY,
    SESSION_VERIFIER_KEY,
    SESSION_RETURN_TO_KEY,
    SESSION_TOKEN_KEY,
)


# =============================================================================
# Exceptions
# =============================================================================

class AuthClientError(Exception):
    """Base exception for CentralAuth client failures"""
    pass


class AuthConfigurationError(AuthClientError):
    """Raised when the client cannot be built from the current settings"""
    pass


class NotAuthenticatedError(AuthClientError):
    """Raised when the request carries no CentralAuth session"""
    pass


class CallbackError(AuthClientError):
    """Raised when the provider callback cannot be completed"""
    pass


# =============================================================================
# Client Contract
# =============================================================================

class AuthClient(Protocol):
    """
    Operations the gateway delegates to.

    Every operation receives the inbound request and returns what should be
    sent back (or the user profile for get_user_data). Implementations may
    raise any exception; the routes turn failures into error redirects.
    """

    async def login(self, request: Request, return_to: Optional[str] = None) -> Response:
        ...

    async def callback(self, request: Request) -> Response:
        ...

    async def user(self, request: Request) -> Response:
        ...

    async def logout(self, request: Request, return_to: Optional[str] = None) -> Response:
        ...

    async def get_user_data(self, request: Request) -> UserProfile:
        ...


AuthClientFactory = Callable[[], AuthClient]


# =============================================================================
# PKCE Helper Functions
# =============================================================================

def generate_code_verifier() -> str:
    """
    Generate a cryptographically random code verifier for PKCE.

    Returns:
        Base64-URL-encoded random string (43-128 characters)
    """
    verifier_bytes = secrets.token_bytes(32)
    return base64.urlsafe_b64encode(verifier_bytes).decode('utf-8').rstrip('=')


def generate_code_challenge(verifier: str) -> str:
    """
    Generate code challenge from verifier using S256 method.

    Args:
        verifier: Code verifier string

    Returns:
        Base64-URL-encoded SHA256 hash of verifier
    """
    digest = hashlib.sha256(verifier.encode('utf-8')).digest()
    return base64.urlsafe_b64encode(digest).decode('utf-8').rstrip('=')


# =============================================================================
# CentralAuth HTTP Client
# =============================================================================

class CentralAuthClient:
    """
    CentralAuth client bound to a single request.

    Redirects without an explicit return-to URL go to base_url.
    """

    def __init__(
        self,
        client_id: str,
        secret: str,
        auth_base_url: str,
        callback_url: str,
        base_url: str = "/",
        debug: bool = False,
    ):
        if not client_id:
            raise AuthConfigurationError("CentralAuth client ID (AUTH_ORGANIZATION_ID) is not set")
        if not secret:
            raise AuthConfigurationError("CentralAuth secret (AUTH_SECRET) is not set")

        self.client_id = client_id
        self.secret = secret
        self.auth_base_url = auth_base_url.rstrip("/")
        self.callback_url = callback_url
        self.debug = debug
        self.base_url = base_url

    def _log(self, message: str, **fields: Any) -> None:
        if self.debug:
            logger.info(f"CentralAuth: {message}", extra=fields)

    # -------------------------------------------------------------------------
    # Login
    # -------------------------------------------------------------------------

    def get_login_url(self, state: str, code_challenge: str) -> str:
        params = {
            "client_id": self.client_id,
            "response_type": "code",
            "redirect_uri": self.callback_url,
            "state": state,
            "code_challenge": code_challenge,
            "code_challenge_method": "S256",
        }
        return f"{self.auth_base_url}/login?{urlencode(params)}"

    async def login(self, request: Request, return_to: Optional[str] = None) -> Response:
        """
        Start the login flow by redirecting to the CentralAuth login page.

        Stores state, PKCE verifier and return-to URL in the session for the
        callback to check.
        """
        state = secrets.token_urlsafe(32)
        code_verifier = generate_code_verifier()

        request.session[SESSION_STATE_KEY] = state
        request.session[SESSION_VERIFIER_KEY] = code_verifier
        if return_to:
            request.session[SESSION_RETURN_TO_KEY] = return_to
        else:
            request.session.pop(SESSION_RETURN_TO_KEY, None)

        login_url = self.get_login_url(state, generate_code_challenge(code_verifier))
        self._log("redirecting to login page", return_to=return_to)

        return RedirectResponse(url=login_url, status_code=302)

    # -------------------------------------------------------------------------
    # Callback
    # -------------------------------------------------------------------------

    async def callback(self, request: Request) -> Response:
        """
        Complete the login flow after CentralAuth redirects back.

        Raises:
            CallbackError: On provider errors, missing parameters, a state
                mismatch or a failed code exchange
        """
        params = request.query_params

        error = params.get("error")
        if error:
            raise CallbackError(
                f"CentralAuth returned an error: {params.get('error_description') or error}"
            )

        code = params.get("code")
        state = params.get("state")
        if not code or not state:
            raise CallbackError("Missing required parameters (code or state)")

        expected_state = request.session.get(SESSION_STATE_KEY)
        if not expected_state or not secrets.compare_digest(state, expected_state):
            raise CallbackError("Invalid state parameter")

        code_verifier = request.session.get(SESSION_VERIFIER_KEY)
        token_data = await self._exchange_code(code, code_verifier)

        session_token = token_data.get("session_token") or token_data.get("access_token")
        if not session_token:
            raise CallbackError("Verify response missing session token")

        return_to = request.session.get(SESSION_RETURN_TO_KEY)

        request.session.pop(SESSION_STATE_KEY, None)
        request.session.pop(SESSION_VERIFIER_KEY, None)
        request.session.pop(SESSION_RETURN_TO_KEY, None)
        request.session[SESSION_TOKEN_KEY] = session_token

        self._log("login completed", return_to=return_to)

        return RedirectResponse(url=return_to or self.base_url, status_code=302)

    async def _exchange_code(self, code: str, code_verifier: Optional[str]) -> Dict[str, Any]:
        """
        Exchange the authorization code for a CentralAuth session token.

        Raises:
            CallbackError: If the verify endpoint rejects the code
            httpx.HTTPError: If the provider is unreachable
        """
        verify_endpoint = f"{self.auth_base_url}/api/v1/verify"

        payload = {
            "code": code,
            "redirect_uri": self.callback_url,
        }
        if code_verifier:
            payload["code_verifier"] = code_verifier

        self._log("verifying authorization code", endpoint=verify_endpoint)

        async with httpx.AsyncClient() as client:
            response = await client.post(
                verify_endpoint,
                json=payload,
                auth=(self.client_id, self.secret),
                timeout=HTTP_TIMEOUT,
            )

            if not response.is_success:
                error_msg = _error_message(response) or "Code verification failed"
                raise CallbackError(f"Code verification failed: {error_msg}")

            return _json_object(response)

    # -------------------------------------------------------------------------
    # User
    # -------------------------------------------------------------------------

    async def get_user_data(self, request: Request) -> UserProfile:
        """
        Fetch the profile of the logged-in user.

        Raises:
            NotAuthenticatedError: If there is no session token
            AuthClientError: If CentralAuth rejects the token
        """

        session_token = request.session.get(SESSION_TOKEN_KEY)
        if not session_token:
            raise NotAuthenticatedError("No CentralAuth session")

        userinfo_endpoint = f"{self.auth_base_url}/api/v1/userinfo"
        self._log("fetching user info", endpoint=userinfo_endpoint)

        async with httpx.AsyncClient() as client:
            response = await client.get(
                userinfo_endpoint,
                headers={"Authorization": f"Bearer {session_token}"},
                timeout=HTTP_TIMEOUT,
            )

            if response.status_code == 401:
                request.session.pop(SESSION_TOKEN_KEY, None)
                raise NotAuthenticatedError("CentralAuth session is no longer valid")

            if not response.is_success:
                error_msg = _error_message(response) or f"HTTP {response.status_code}"
                raise AuthClientError(f"User info request failed: {error_msg}")

            profile = UserProfile.model_validate(_json_object(response))

        return profile

    async def user(self, request: Request) -> Response:
        """Return the logged-in user as JSON."""
        profile = await self.get_user_data(request)
        return JSONResponse(content=profile.model_dump(mode="json"))

    # -------------------------------------------------------------------------
    # Logout
    # -------------------------------------------------------------------------

    async def logout(self, request: Request, return_to: Optional[str] = None) -> Response:
        """
        End the CentralAuth session and redirect to return_to.

        The local session is cleared even if the provider call fails; the
        failure is still raised to the caller.
        """
        session_token = request.session.get(SESSION_TOKEN_KEY)

        for key in SESSION_KEYS:
            request.session.pop(key, None)

        if session_token:
            logout_endpoint = f"{self.auth_base_url}/api/v1/logout"
            self._log("revoking session", endpoint=logout_endpoint)

            async with httpx.AsyncClient() as client:
                response = await client.post(
                    logout_endpoint,
                    headers={"Authorization": f"Bearer {session_token}"},
                    timeout=HTTP_TIMEOUT,
                )
                if not response.is_success:
                    error_msg = _error_message(response) or f"HTTP {response.status_code}"
                    raise AuthClientError(f"Logout failed: {error_msg}")

        return RedirectResponse(url=return_to or self.base_url, status_code=302)


# =============================================================================
# Response Helpers
# =============================================================================

def _error_message(response: httpx.Response) -> Optional[str]:
    if not response.headers.get("content-type", "").startswith("application/json"):
        return None
    try:
        error_data = response.json()
    except ValueError:
        return None
    if not isinstance(error_data, dict):
        return None
    return error_data.get("error_description") or error_data.get("message") or error_data.get("error")


def _json_object(response: httpx.Response) -> Dict[str, Any]:
    try:
        data = response.json()
    except ValueError as e:
        raise AuthClientError("CentralAuth returned invalid JSON") from e
    if not isinstance(data, dict):
        raise AuthClientError("CentralAuth returned an unexpected response")
    return data


# =============================================================================
# Factory
# =============================================================================

def create_auth_client(settings: Settings) -> CentralAuthClient:
    """
    Build a new CentralAuth client from settings.

    Called once per request; instances are never reused.

    Raises:
        AuthConfigurationError: If the organization ID or secret is missing
    """
    return CentralAuthClient(
        client_id=settings.AUTH_ORGANIZATION_ID,
        secret=settings.AUTH_SECRET,
        auth_base_url=settings.auth_base_url,
        callback_url=settings.callback_url,
        base_url=settings.base_url,
        debug=settings.AUTH_DEBUG,
    )
