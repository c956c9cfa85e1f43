from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import httpx

from .constants import APP_PLATFORM, CONTENT_TYPE, LYRICS_PARAMS, LYRICS_URL, USER_AGENT
from .errors import UpstreamRequestFailed, UpstreamUnavailable
from .tokens import AccessToken

logger = logging.getLogger(__name__)


class LyricsFetcher:
    """Reads the ``lyrics`` field of the color-lyrics endpoint for a track."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        *,
        lyrics_url: str = LYRICS_URL,
        user_agent: str = USER_AGENT,
    ) -> None:
        self._http = http
        self._lyrics_url = lyrics_url
        self._user_agent = user_agent

    def _headers(self, token: AccessToken) -> dict[str, str]:
        return {
            "App-platform": APP_PLATFORM,
            "Authorization": f"Bearer {token.token}",
            "User-Agent": self._user_agent,
            "Content-Type": CONTENT_TYPE,
        }

    async def fetch(self, token: AccessToken, track_id: str) -> Any:
        # The track id is opaque; Spotify decides whether it exists
        url = f"{self._lyrics_url}{quote(track_id, safe='')}"
        meta = {"track_id": track_id}
        try:
            response = await self._http.get(
                url, params=LYRICS_PARAMS, headers=self._headers(token)
            )
        except httpx.HTTPError as e:
            logger.warning(
                "spotify.lyrics.network_error",
                extra={"meta": {**meta, "error": str(e), "error_type": type(e).__name__}},
            )
            raise UpstreamUnavailable(
                f"lyrics endpoint unreachable: {type(e).__name__}", endpoint="lyrics"
            ) from e

        if response.status_code != 200:
            logger.error(
                "spotify.lyrics.status_error",
                extra={"meta": {**meta, "status": response.status_code}},
            )
            raise UpstreamRequestFailed(
                f"lyrics endpoint returned {response.status_code}",
                endpoint="lyrics",
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as e:
            logger.error(
                "spotify.lyrics.json_decode_failed", extra={"meta": {**meta, "status": 200}}
            )
            raise UpstreamRequestFailed(
                "lyrics response is not JSON", endpoint="lyrics", status_code=200
            ) from e

        if not isinstance(payload, dict) or "lyrics" not in payload:
            logger.error(
                "spotify.lyrics.missing_field", extra={"meta": {**meta, "status": 200}}
            )
            raise UpstreamRequestFailed(
                "lyrics response has no lyrics field", endpoint="lyrics", status_code=200
            )

        return payload["lyrics"]
