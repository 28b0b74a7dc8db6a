"""
Object key generation.

Keys must be unguessable: anyone who knows a key can fetch the object from
a public bucket. So keys come only from a CSPRNG, never from the video id,
the owner, or the clock.
"""

import base64
import logging
import secrets
from typing import Callable, Optional

from .errors import RandomSourceUnavailable

logger = logging.getLogger(__name__)

KEY_ENTROPY_BYTES = 32


class KeyGenerator:
    """
    Produces random, URL-safe object keys.

    The random source is injectable only so tests can simulate entropy
    exhaustion; production always uses secrets.token_bytes.
    """

    def __init__(
        self,
        random_bytes: Callable[[int], bytes] = secrets.token_bytes,
        entropy_bytes: int = KEY_ENTROPY_BYTES,
    ) -> None:
        if entropy_bytes < KEY_ENTROPY_BYTES:
            raise ValueError(f"entropy_bytes must be at least {KEY_ENTROPY_BYTES}")
        self._random_bytes = random_bytes
        self._entropy_bytes = entropy_bytes

    def generate(self, namespace: Optional[str] = None) -> str:
        """
        Return a fresh key, optionally prefixed with "<namespace>/".

        32 random bytes encode to 43 URL-safe base64 characters once the
        trailing "=" padding is dropped.
        """
        try:
            raw = self._random_bytes(self._entropy_bytes)
        except (OSError, NotImplementedError) as e:
            logger.error("Random source unavailable", extra={"error": str(e)})
            raise RandomSourceUnavailable(f"Random source unavailable: {e}") from e

        key = base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")

        if namespace:
            return f"{namespace.strip('/')}/{key}"
        return key
