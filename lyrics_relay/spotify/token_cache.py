from __future__ import annotations

import logging
import time
from collections.abc import Awaitable, Callable
from typing import Protocol

from .credentials import fingerprint
from .tokens import AccessToken

logger = logging.getLogger(__name__)


def now_ms() -> int:
    return int(time.time() * 1000)


class Exchanger(Protocol):
    def exchange(self, credential: str) -> Awaitable[AccessToken]: ...


class TokenCache:
    """Lazily refreshed map from sp_dc cookie to its current access token.

    A token is only replaced after a successful exchange, so a failed refresh
    leaves the previous entry in place. Entries are never evicted.

    The cache does not lock; callers serialize access (see
    :class:`~lyrics_relay.spotify.client.LyricsClient`).
    """

    def __init__(
        self,
        exchanger: Exchanger,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._exchanger = exchanger
        self._clock = clock
        self._tokens: dict[str, AccessToken] = {}

    def peek(self, credential: str) -> AccessToken | None:
        return self._tokens.get(credential)

    def __len__(self) -> int:
        return len(self._tokens)

    async def get_valid_token(self, credential: str) -> AccessToken:
        cached = self._tokens.get(credential)
        now = self._clock()
        if cached is not None and not cached.is_expired(now):
            return cached

        logger.debug(
            "spotify.token_cache.refresh",
            extra={
                "meta": {
                    "credential": fingerprint(credential),
                    "reason": "missing" if cached is None else "expired",
                    "now_ms": now,
                }
            },
        )
        fresh = await self._exchanger.exchange(credential)
        self._tokens[credential] = fresh
        return fresh
