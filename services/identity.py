"""
Subject identity resolution.

The engine only needs a stable opaque id for the acting user. Authenticated
users are identified by their auth user id; anonymous visitors get a generated
pseudo id (`user_<epoch_ms>_<9 base36 chars>`) that stays the same for the
provider's lifetime.
"""

from __future__ import annotations

import secrets
import string
import threading
import time
from typing import Callable, Optional, Protocol

from domain.errors import IdentityUnavailable

_BASE36 = string.digits + string.ascii_lowercase


class IdentityProvider(Protocol):
    def resolve_subject_id(self) -> str:
        ...


def generate_anonymous_id(now_ms: Optional[int] = None) -> str:
    stamp = int(time.time() * 1000) if now_ms is None else now_ms
    suffix = "".join(secrets.choice(_BASE36) for _ in range(9))
    return f"user_{stamp}_{suffix}"


class FixedIdentityProvider:
    """Identity already known to the caller (e.g. taken from a request header)."""

    def __init__(self, subject_id: Optional[str]) -> None:
        self._subject_id = subject_id

    def resolve_subject_id(self) -> str:
        if not self._subject_id:
            raise IdentityUnavailable("No subject id available for this request")
        return self._subject_id


class SessionIdentityProvider:
    """
    Prefer the authenticated user; fall back to a sticky anonymous pseudo id.

    `authenticated_user` is consulted on every call so a login mid-session is
    picked up.
    """

    def __init__(
        self,
        authenticated_user: Optional[Callable[[], Optional[str]]] = None,
        anonymous_id: Optional[str] = None,
    ) -> None:
        self._authenticated_user = authenticated_user
        self._anonymous_id = anonymous_id
        self._lock = threading.Lock()

    def resolve_subject_id(self) -> str:
        if self._authenticated_user is not None:
            user_id = self._authenticated_user()
            if user_id:
                return user_id

        with self._lock:
            if not self._anonymous_id:
                self._anonymous_id = generate_anonymous_id()
            return self._anonymous_id


__all__ = [
    "IdentityProvider",
    "FixedIdentityProvider",
    "SessionIdentityProvider",
    "generate_anonymous_id",
]
