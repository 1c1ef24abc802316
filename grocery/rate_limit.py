"""Per-client request limits for the authentication and user search endpoints."""

from slowapi import Limiter
from slowapi.util import get_remote_address

from grocery.config import get_settings

_settings = get_settings()

limiter = Limiter(
    key_func=get_remote_address,
    storage_uri=_settings.rate_limit_storage_uri,
    enabled=_settings.rate_limit_enabled,
)


# Limits are read per request so they follow the current settings
def login_limit() -> str:
    return get_settings().login_rate_limit


def register_limit() -> str:
    return get_settings().register_rate_limit


def user_search_limit() -> str:
    return get_settings().user_search_rate_limit
