"""Unsubscribe confirmation token generation."""

import base64
import hashlib
import secrets
import time
from collections.abc import Callable

NONCE_BYTES = 16


class TokenEngine:
    """Mints opaque, URL-safe tokens bound to an email address.

    The digest input is the email, the wall clock in nanoseconds and a random
    nonce. The nonce keeps two mints for the same email inside one clock tick
    from colliding. The engine holds no state; callers persist the token.
    """

    def __init__(
        self,
        clock_ns: Callable[[], int] = time.time_ns,
        nonce: Callable[[int], bytes] = secrets.token_bytes,
    ) -> None:
        self._clock_ns = clock_ns
        self._nonce = nonce

    def mint(self, email: str) -> str:
        digest = hashlib.sha256()
        digest.update(email.encode("utf-8"))
        digest.update(str(self._clock_ns()).encode("ascii"))
        digest.update(self._nonce(NONCE_BYTES))
        # urlsafe_b64encode already maps + -> - and / -> _
        return base64.urlsafe_b64encode(digest.digest()).rstrip(b"=").decode("ascii")
