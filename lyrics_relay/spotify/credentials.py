from __future__ import annotations

import hashlib
import random
from collections.abc import Iterable, Sequence
from typing import Protocol

from .errors import NoCredentialsConfigured


def fingerprint(credential: str) -> str:
    """Short stable identifier for a cookie, safe to put in log lines."""
    return hashlib.sha256(credential.encode()).hexdigest()[:12]


class CredentialSelector(Protocol):
    """Chooses the sp_dc cookie that serves the next request."""

    @property
    def credentials(self) -> Sequence[str]: ...

    def select(self) -> str: ...


class RandomCredentialSelector:
    """Uniform random choice across the configured cookies.

    Every call is independent: there is no session affinity and no
    round-robin position to share between requests.
    """

    def __init__(self, credentials: Iterable[str], rng: random.Random | None = None) -> None:
        self._credentials = tuple(credentials)
        if not self._credentials:
            raise NoCredentialsConfigured()
        self._rng = rng or random.Random()

    @property
    def credentials(self) -> tuple[str, ...]:
        return self._credentials

    def select(self) -> str:
        return self._rng.choice(self._credentials)

    def __len__(self) -> int:
        return len(self._credentials)
