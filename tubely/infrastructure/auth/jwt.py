"""
Bearer token validation.

Callers authenticate with an HS256 JWT whose subject is their user id.
Tokens are minted elsewhere (the login service); this module only checks
them and turns them into a user id. issue_access_token exists for local
tooling and tests.
"""

import datetime
import logging
from typing import Optional
from uuid import UUID

import jwt

from ...core.media.errors import Unauthorized
from ...core.media.pipeline import IdentityExchange

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"


def get_bearer_token(authorization: Optional[str]) -> str:
    """Extract the token from an "Authorization: Bearer <token>" header value."""
    if not authorization:
        raise Unauthorized("Authorization header missing")

    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise Unauthorized("Malformed authorization header")

    return token.strip()


class JWTIdentityExchange:
    """Validates HS256 tokens signed with the shared secret."""

    def __init__(self, secret_key: str, issuer: str = "tubely") -> None:
        if not secret_key:
            raise ValueError("secret_key is required")
        self._secret_key = secret_key
        self._issuer = issuer

    def exchange(self, bearer_token: Optional[str]) -> UUID:
        if not bearer_token:
            raise Unauthorized("Missing bearer token")

        try:
            payload = jwt.decode(
                bearer_token,
                self._secret_key,
                algorithms=[ALGORITHM],
                issuer=self._issuer,
                options={"require": ["sub", "exp", "iss"]},
            )
        except jwt.ExpiredSignatureError:
            raise Unauthorized("Token expired")
        except jwt.InvalidTokenError as e:
            logger.warning("Rejected bearer token", extra={"error": str(e)})
            raise Unauthorized("Invalid token")

        try:
            return UUID(payload["sub"])
        except (ValueError, TypeError):
            raise Unauthorized("Token subject is not a user id")


def issue_access_token(
    user_id: UUID,
    secret_key: str,
    issuer: str = "tubely",
    expires_in: datetime.timedelta = datetime.timedelta(hours=1),
) -> str:
    """Create a signed access token for user_id."""
    now = datetime.datetime.now(datetime.timezone.utc)
    payload = {
        "sub": str(user_id),
        "iss": issuer,
        "iat": now,
        "exp": now + expires_in,
    }
    return jwt.encode(payload, secret_key, algorithm=ALGORITHM)
