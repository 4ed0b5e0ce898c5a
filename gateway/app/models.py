"""
Data Models Module

Pydantic models and enums shared by the auth routes and the HTML pages.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


# ============================================================================
# Authentication Models
# ============================================================================

class ErrorCode(str, Enum):
    """Symbolic error codes passed to the home page as ?error=<code>."""

    NOT_LOGGED_IN = "not_logged_in"
    LOGOUT_FAILED = "logout_failed"
    CALLBACK_FAILED = "callback_failed"
    LOGIN_FAILED = "login_failed"
    USER_INFO_FAILED = "user_info_failed"


class UserProfile(BaseModel):
    """
    User profile as returned by CentralAuth.

    Only the fields the profile page renders are declared; anything else the
    provider sends is kept and passed through untouched.
    """

    model_config = ConfigDict(extra="allow")

    email: Optional[str] = Field(None, description="User email address")
    gravatar: Optional[str] = Field(None, description="Avatar image URL")

    @property
    def display_email(self) -> str:
        return self.email or ""

    @property
    def avatar_url(self) -> str:
        return self.gravatar or ""
