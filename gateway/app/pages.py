"""
HTML pages: home and profile.

Pages are rendered inline; there are no templates or static files.
"""

import logging
from html import escape
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import HTMLResponse

from .auth.client import AuthClientFactory
from .auth.dependencies import get_auth_client_factory
from .errors import error_redirect, get_error_message
from .models import ErrorCode, UserProfile


logger = logging.getLogger(__name__)

pages_router = APIRouter(tags=["pages"])

PAGE_STYLES = """
            * { margin: 0; padding: 0; box-sizing: border-box; }
            body {
                font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, Helvetica, Arial, sans-serif;
                background: #f3f4f6;
                min-height: 100vh;
                display: flex;
                align-items: center;
                justify-content: center;
                padding: 20px;
            }
            .container {
                background: white;
                border-radius: 12px;
                padding: 40px;
                max-width: 560px;
                width: 100%;
                box-shadow: 0 10px 40px rgba(0,0,0,0.1);
                text-align: center;
            }
            h1 { color: #1f2937; font-size: 26px; margin-bottom: 16px; }
            p { color: #4b5563; margin-bottom: 16px; }
            .btn {
                display: inline-block;
                background: #667eea;
                color: white;
                padding: 12px 24px;
                margin: 4px;
                border-radius: 8px;
                text-decoration: none;
                font-weight: 600;
            }
            .btn-success { background: #10b981; }
            .btn-danger { background: #ef4444; }
            .error, .success {
                padding: 12px;
                border-radius: 8px;
                margin-bottom: 16px;
            }
            .error { background: #fee2e2; color: #991b1b; }
            .success { background: #d1fae5; color: #065f46; }
            .user-info img {
                width: 96px;
                height: 96px;
                border-radius: 50%;
                margin-bottom: 12px;
            }
"""


# =============================================================================
# Rendering
# =============================================================================

def _render_page(title: str, body: str) -> str:
    return f"""
    <!DOCTYPE html>
    <html lang="en">
    <head>
        <meta charset="UTF-8">
        <meta name="viewport" content="width=device-width, initial-scale=1.0">
        <title>{escape(title)}</title>
        <style>{PAGE_STYLES}</style>
    </head>
    <body>
        <div class="container">
            {body}
        </div>
    </body>
    </html>
    """


def _render_error(error: Optional[str]) -> str:
    if not error:
        return ""
    return f'<div class="error">{escape(get_error_message(error))}</div>'


def render_home_page(error: Optional[str] = None) -> str:
    """
    Render the landing page with login, profile and logout links.

    Args:
        error: Optional error code from the query string
    """
    body = f"""
            <h1>CentralAuth FastAPI Example</h1>
            <p>Welcome to the CentralAuth integration example using FastAPI!</p>

            {_render_error(error)}

            <div id="auth-section">
                <a href="/api/auth/login" class="btn">Login with CentralAuth</a>
                <a href="/profile" class="btn btn-success">View Profile</a>
                <a href="/api/auth/logout" class="btn btn-danger">Logout</a>
            </div>
    """
    return _render_page("CentralAuth FastAPI Example", body)


def render_profile_page(
    user: Optional[UserProfile],
    success: bool = False,
    error: Optional[str] = None,
) -> str:
    """
    Render the profile page for a user.

    Args:
        user: Profile to show, or None for the logged-out message
        success: Show the "Successfully logged in!" banner
        error: Optional error code from the query string
    """
    success_banner = '<div class="success">Successfully logged in!</div>' if success else ""

    if user:
        user_section = f"""
            <div class="user-info">
                <img src="{escape(user.avatar_url)}" alt="User Avatar">
                <p><strong>Email:</strong> {escape(user.display_email)}</p>
            </div>
        """
    else:
        user_section = "<p>You are not logged in.</p>"

    body = f"""
            <h1>User Profile</h1>

            {success_banner}
            {_render_error(error)}

            {user_section}

            <div class="button-group">
                <a href="/" class="btn">Back to Home</a>
                <a href="/api/auth/logout" class="btn btn-danger">Logout</a>
            </div>
    """
    return _render_page("Profile - CentralAuth FastAPI Example", body)


# =============================================================================
# Endpoints
# =============================================================================

@pages_router.get("/", response_class=HTMLResponse)
async def home(error: Optional[str] = Query(None, description="Error code to display")):
    return HTMLResponse(content=render_home_page(error))


@pages_router.get("/profile", response_class=HTMLResponse)
async def profile(
    request: Request,
    success: Optional[str] = Query(None, description="Set after a successful login"),
    error: Optional[str] = Query(None, description="Error code to display"),
    client_factory: AuthClientFactory = Depends(get_auth_client_factory),
):
    """
    Show the logged-in user's email and avatar.

    Redirects to /?error=not_logged_in when the user cannot be looked up.
    """
    try:
        client = client_factory()
        user = await client.get_user_data(request)
    except Exception as e:
        logger.info(
            f"Could not fetch fresh user data: {e}",
            extra={"exception_type": type(e).__name__},
        )
        return error_redirect(ErrorCode.NOT_LOGGED_IN)

    return HTMLResponse(content=render_profile_page(user, success=bool(success), error=error))
