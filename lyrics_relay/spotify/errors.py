"""Failure taxonomy for the token cache and the upstream lyrics client."""

from __future__ import annotations


class SpotifyLyricsError(RuntimeError):
    """Base class for every failure raised by :mod:`lyrics_relay.spotify`."""

    def __init__(
        self,
        message: str = "",
        *,
        endpoint: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.endpoint = endpoint
        self.status_code = status_code

    def log_meta(self) -> dict:
        return {
            "error_type": type(self).__name__,
            "error": str(self),
            "endpoint": self.endpoint,
            "status_code": self.status_code,
        }


class NoCredentialsConfigured(SpotifyLyricsError):
    """Raised when the relay is started without a single sp_dc cookie."""

    def __init__(self, message: str = "You must provide at least one sp_dc cookie") -> None:
        super().__init__(message)


class UpstreamUnavailable(SpotifyLyricsError):
    """Transport failure or non-2xx status while talking to Spotify."""


class MalformedUpstreamResponse(SpotifyLyricsError):
    """A 2xx token response without a usable accessToken/expiry pair."""


class UpstreamRequestFailed(SpotifyLyricsError):
    """The lyrics endpoint answered with a non-200 or without ``lyrics``."""


class LyricsUnavailable(SpotifyLyricsError):
    """Opaque failure surfaced to inbound callers.

    The underlying cause is chained (``__cause__``) for server-side logging
    and never rendered into a response.
    """

    def __init__(self, message: str = "Something went wrong") -> None:
        super().__init__(message)
