"""
Authentication Package

This package wires the CentralAuth client into the FastAPI routing layer.

Modules:
- client: AuthClient contract, CentralAuthClient and its per-request factory
- dependencies: FastAPI dependency providing the client factory
- routes: /api/auth/login, /callback, /user and /logout

The authentication flow:
1. Browser opens /api/auth/login and is redirected to CentralAuth
2. User authenticates with CentralAuth
3. CentralAuth redirects to /api/auth/callback with an authorization code
4. The client verifies the code and stores the session token in the cookie session
5. /profile and /api/auth/user look the user up with that token
"""

from .routes import auth_router

__all__ = [
    "auth_router",
]
