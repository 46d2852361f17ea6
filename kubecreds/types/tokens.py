"""Token provider state definitions."""

from enum import Enum


class TokenState(Enum):
    """
    Where a context's bearer token comes from, and whether it is usable.

    NO_TOKEN and STATIC_TOKEN never change after activation. Auth-provider
    users move between DYNAMIC_EXPIRED (no token yet, or past expiry) and
    DYNAMIC_FRESH as get_token() refreshes.
    """

    NO_TOKEN = "no-token"
    STATIC_TOKEN = "static-token"
    DYNAMIC_FRESH = "dynamic-fresh"
    DYNAMIC_EXPIRED = "dynamic-expired"

    @property
    def is_dynamic(self) -> bool:
        return self in (TokenState.DYNAMIC_FRESH, TokenState.DYNAMIC_EXPIRED)


class TokenAction(Enum):
    """What get_token() must do for an auth-provider token."""

    RETURN_CACHED = "return-cached"
    REFRESH = "refresh"
