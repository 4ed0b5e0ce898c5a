"""
Authentication routes delegating to the CentralAuth client.

Each route builds a new client for the request and forwards the request to
one client operation. Whatever the client returns is sent back unchanged;
any failure becomes a redirect to the home page with an error code.
"""

import logging
from typing import Awaitable, Callable

from fastapi import APIRouter, Depends, Request, Response

from ..config import Settings, get_settings
from ..errors import error_redirect
from ..models import ErrorCode
from .client import AuthClient, AuthClientFactory
from .dependencies import get_auth_client_factory


logger = logging.getLogger(__name__)


# =============================================================================
# Router Setup
# =============================================================================

auth_router = APIRouter(
    prefix="/api/auth",
    tags=["authentication"],
)


async def delegate(
    request: Request,
    client_factory: AuthClientFactory,
    operation: Callable[[AuthClient], Awaitable[Response]],
    error_code: ErrorCode,
) -> Response:
    """
    Run one auth client operation for this request.

    Args:
        request: Inbound request, used for logging
        client_factory: Builds the client; called once per request
        operation: Calls one client method, e.g. ``lambda c: c.callback(request)``
        error_code: Code to redirect with if anything fails

    Returns:
        The client's response, or a redirect to /?error=<error_code>
    """
    try:
        client = client_factory()
        return await operation(client)
    except Exception as e:
        logger.error(
            f"Auth request failed: {e}",
            extra={
                "path": request.url.path,
                "error_code": error_code.value,
                "exception_type": type(e).__name__,
            },
            exc_info=True,
        )
        return error_redirect(error_code)


# =============================================================================
# Endpoints
# =============================================================================

@auth_router.get("/login")
async def login(
    request: Request,
    settings: Settings = Depends(get_settings),
    client_factory: AuthClientFactory = Depends(get_auth_client_factory),
):
    """Redirect to CentralAuth; the user comes back to /profile."""
    return await delegate(
        request, client_factory,
        lambda client: client.login(request, return_to=settings.profile_url),
        ErrorCode.LOGIN_FAILED,
    )


@auth_router.get("/callback")
async def callback(
    request: Request,
    client_factory: AuthClientFactory = Depends(get_auth_client_factory),
):
    """Complete the login started by /login."""
    return await delegate(
        request, client_factory,
        lambda client: client.callback(request),
        ErrorCode.CALLBACK_FAILED,
    )


@auth_router.get("/user")
async def user(
    request: Request,
    client_factory: AuthClientFactory = Depends(get_auth_client_factory),
):
    return await delegate(
        request, client_factory,
        lambda client: client.user(request),
        ErrorCode.USER_INFO_FAILED,
    )


@auth_router.get("/logout")
async def logout(
    request: Request,
    settings: Settings = Depends(get_settings),
    client_factory: AuthClientFactory = Depends(get_auth_client_factory),
):
    """End the session and return to the home page."""
    return await delegate(
        request, client_factory,
        lambda client: client.logout(request, return_to=settings.base_url),
        ErrorCode.LOGOUT_FAILED,
    )
