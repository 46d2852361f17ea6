"""Type definitions for kubecreds."""

from kubecreds.types.tokens import TokenAction, TokenState

__all__ = [
    "TokenAction",
    "TokenState",
]
