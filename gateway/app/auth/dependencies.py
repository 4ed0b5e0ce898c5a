from functools import partial

from fastapi import Depends

from ..config import Settings, get_settings
from .client import AuthClientFactory, create_auth_client


def get_auth_client_factory(settings: Settings = Depends(get_settings)) -> AuthClientFactory:
    """
    Dependency that returns a factory for per-request auth clients.

    Routes call the factory inside their error handling, so a client that
    cannot be built (e.g. missing AUTH_SECRET) becomes an error redirect like
    any other client failure. Tests override this to inject fake clients.
    """
    return partial(create_auth_client, settings)
