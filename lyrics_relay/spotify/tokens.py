"""Exchange of a long-lived sp_dc cookie for a short-lived web player token."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from .constants import APP_PLATFORM, CONTENT_TYPE, TOKEN_URL, USER_AGENT
from .credentials import fingerprint
from .errors import MalformedUpstreamResponse, UpstreamUnavailable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccessToken:
    """Bearer token for the lyrics endpoint."""

    token: str
    expires_at_ms: int

    def is_expired(self, now_ms: int) -> bool:
        # Equality counts as expired so a token never runs out mid-request
        return self.expires_at_ms <= now_ms


def _parse_access_token(payload: object) -> AccessToken:
    if not isinstance(payload, dict):
        raise MalformedUpstreamResponse(
            "token response is not a JSON object", endpoint="token"
        )

    token = payload.get("accessToken")
    if not isinstance(token, str) or not token:
        raise MalformedUpstreamResponse(
            "token response lacks a usable accessToken", endpoint="token"
        )

    expires_at = payload.get("accessTokenExpirationTimestampMs")
    # bool is an int subclass; a JSON true is not a timestamp
    if isinstance(expires_at, bool) or not isinstance(expires_at, int) or expires_at < 0:
        raise MalformedUpstreamResponse(
            "token response lacks a non-negative integer accessTokenExpirationTimestampMs",
            endpoint="token",
        )

    return AccessToken(token=token, expires_at_ms=expires_at)


class TokenExchanger:
    """Trades one cookie for an :class:`AccessToken`. Holds no state."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        *,
        token_url: str = TOKEN_URL,
        user_agent: str = USER_AGENT,
    ) -> None:
        self._http = http
        self._token_url = token_url
        self._user_agent = user_agent

    def _headers(self, credential: str) -> dict[str, str]:
        return {
            "App-platform": APP_PLATFORM,
            "Cookie": f"sp_dc={credential}",
            "User-Agent": self._user_agent,
            "Content-Type": CONTENT_TYPE,
        }

    async def exchange(self, credential: str) -> AccessToken:
        """Fetch a fresh token for ``credential``.

        Raises:
            UpstreamUnavailable: the request failed in transit or the endpoint
                answered with a non-2xx status.
            MalformedUpstreamResponse: a 2xx body without both required fields.
        """
        meta = {"credential": fingerprint(credential)}
        try:
            response = await self._http.get(
                self._token_url, headers=self._headers(credential)
            )
        except httpx.HTTPError as e:
            logger.warning(
                "spotify.token.network_error",
                extra={"meta": {**meta, "error": str(e), "error_type": type(e).__name__}},
            )
            raise UpstreamUnavailable(
                f"token endpoint unreachable: {type(e).__name__}", endpoint="token"
            ) from e

        if not response.is_success:
            logger.warning(
                "spotify.token.status_error",
                extra={"meta": {**meta, "status": response.status_code}},
            )
            raise UpstreamUnavailable(
                f"token endpoint returned {response.status_code}",
                endpoint="token",
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as e:
            logger.error(
                "spotify.token.json_decode_failed",
                extra={"meta": {**meta, "status": response.status_code}},
            )
            raise MalformedUpstreamResponse(
                "token response is not JSON",
                endpoint="token",
                status_code=response.status_code,
            ) from e

        try:
            access_token = _parse_access_token(payload)
        except MalformedUpstreamResponse as e:
            e.status_code = response.status_code
            logger.error(
                "spotify.token.malformed",
                extra={
                    "meta": {
                        **meta,
                        "reason": str(e),
                        "fields": sorted(payload) if isinstance(payload, dict) else None,
                    }
                },
            )
            raise

        logger.info(
            "spotify.token.exchanged",
            extra={"meta": {**meta, "expires_at_ms": access_token.expires_at_ms}},
        )
        return access_token
