"""Caller identity from bearer tokens."""

from .jwt import IdentityExchange, JWTIdentityExchange, get_bearer_token, issue_access_token

__all__ = [
    "IdentityExchange",
    "JWTIdentityExchange",
    "get_bearer_token",
    "issue_access_token",
]
