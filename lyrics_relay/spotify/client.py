from __future__ import annotations

import asyncio
import logging
import random
import time
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Literal

import httpx

from .credentials import CredentialSelector, RandomCredentialSelector, fingerprint
from .errors import LyricsUnavailable, SpotifyLyricsError
from .lyrics import LyricsFetcher
from .token_cache import TokenCache, now_ms
from .tokens import TokenExchanger

if TYPE_CHECKING:
    from ..settings import Settings

logger = logging.getLogger(__name__)

LockScope = Literal["global", "credential"]


class LyricsClient:
    """Single entry point for lyrics lookups.

    Each call picks a cookie, makes sure its access token is fresh and reads
    the lyrics with it. With ``lock_scope="global"`` one lock covers that whole
    sequence, so only one upstream call is in flight at any time and a cookie
    is never exchanged twice concurrently. ``lock_scope="credential"`` keeps
    the second guarantee while letting requests on different cookies overlap.
    """

    def __init__(
        self,
        selector: CredentialSelector,
        cache: TokenCache,
        fetcher: LyricsFetcher,
        *,
        lock_scope: LockScope = "global",
        http: httpx.AsyncClient | None = None,
    ) -> None:
        if lock_scope not in ("global", "credential"):
            raise ValueError(f"unknown lock scope: {lock_scope!r}")
        self.selector = selector
        self.cache = cache
        self.fetcher = fetcher
        self.lock_scope = lock_scope
        self._http = http
        self._lock = asyncio.Lock()
        self._credential_locks: dict[str, asyncio.Lock] = {}

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        http: httpx.AsyncClient | None = None,
        clock: Callable[[], int] = now_ms,
        rng: random.Random | None = None,
    ) -> LyricsClient:
        """Wire the client from process settings.

        Raises :class:`NoCredentialsConfigured` before any network resource is
        created when ``settings.cookies`` is empty. When ``http`` is omitted
        the client owns its ``httpx.AsyncClient`` and closes it in
        :meth:`aclose`.
        """
        selector = RandomCredentialSelector(settings.cookies, rng=rng)
        owned = None
        if http is None:
            http = owned = httpx.AsyncClient(
                timeout=settings.http_timeout_seconds, follow_redirects=True
            )
        exchanger = TokenExchanger(
            http, token_url=settings.token_url, user_agent=settings.user_agent
        )
        fetcher = LyricsFetcher(
            http, lyrics_url=settings.lyrics_url, user_agent=settings.user_agent
        )
        return cls(
            selector,
            TokenCache(exchanger, clock=clock),
            fetcher,
            lock_scope=settings.lock_scope,
            http=owned,
        )

    @property
    def credential_count(self) -> int:
        return len(self.selector.credentials)

    def _lock_for(self, credential: str) -> asyncio.Lock:
        lock = self._credential_locks.get(credential)
        if lock is None:
            lock = self._credential_locks[credential] = asyncio.Lock()
        return lock

    async def _lookup(self, credential: str, track_id: str) -> Any:
        token = await self.cache.get_valid_token(credential)
        return await self.fetcher.fetch(token, track_id)

    async def get_lyrics(self, track_id: str) -> Any:
        """Return the upstream ``lyrics`` value for ``track_id``.

        Raises:
            LyricsUnavailable: for any upstream failure. The cause is chained
                and logged here; callers should not show it to clients.
        """
        started = time.perf_counter()
        credential = None
        try:
            if self.lock_scope == "global":
                async with self._lock:
                    credential = self.selector.select()
                    lyrics = await self._lookup(credential, track_id)
            else:
                credential = self.selector.select()
                async with self._lock_for(credential):
                    lyrics = await self._lookup(credential, track_id)
        except SpotifyLyricsError as e:
            logger.error(
                "spotify.lyrics_failed",
                extra={
                    "meta": {
                        "track_id": track_id,
                        "credential": fingerprint(credential) if credential else None,
                        "elapsed_ms": round((time.perf_counter() - started) * 1000, 1),
                        **e.log_meta(),
                    }
                },
            )
            raise LyricsUnavailable() from e

        logger.info(
            "spotify.lyrics_served",
            extra={
                "meta": {
                    "track_id": track_id,
                    "credential": fingerprint(credential),
                    "elapsed_ms": round((time.perf_counter() - started) * 1000, 1),
                }
            },
        )
        return lyrics

    async def aclose(self) -> None:
        if self._http is not None:
            await self._http.aclose()
