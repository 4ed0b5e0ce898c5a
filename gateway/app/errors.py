"""
Error code lookup for the ?error= query parameter.
"""

from typing import Dict, Optional

from fastapi.responses import RedirectResponse

from .models import ErrorCode


ERROR_MESSAGES: Dict[str, str] = {
    ErrorCode.NOT_LOGGED_IN.value: "You need to be logged in to view the profile.",
    ErrorCode.LOGOUT_FAILED.value: "Logout failed. Please try again.",
    ErrorCode.CALLBACK_FAILED.value: "Authentication callback failed. Please try logging in again.",
    ErrorCode.LOGIN_FAILED.value: "Login failed. Please try again.",
    ErrorCode.USER_INFO_FAILED.value: "Failed to get user information. Please try again.",
}

DEFAULT_ERROR_MESSAGE = "An error occurred."


def get_error_message(error_code: Optional[str]) -> str:
    """
    Map a symbolic error code to its human-readable message.

    Unknown codes get a generic message rather than echoing the code back.
    """
    if isinstance(error_code, ErrorCode):
        error_code = error_code.value
    return ERROR_MESSAGES.get(error_code or "", DEFAULT_ERROR_MESSAGE)


def error_redirect(error_code: ErrorCode) -> RedirectResponse:
    """Redirect to the home page, which displays the error."""
    return RedirectResponse(url=f"/?error={error_code.value}", status_code=302)
