"""Spotify web player access: cookie pool, token cache and lyrics reads."""

from .client import LyricsClient
from .credentials import CredentialSelector, RandomCredentialSelector
from .errors import (
    LyricsUnavailable,
    MalformedUpstreamResponse,
    NoCredentialsConfigured,
    SpotifyLyricsError,
    UpstreamRequestFailed,
    UpstreamUnavailable,
)
from .lyrics import LyricsFetcher
from .token_cache import TokenCache
from .tokens import AccessToken, TokenExchanger

__all__ = [
    "AccessToken",
    "CredentialSelector",
    "LyricsClient",
    "LyricsFetcher",
    "LyricsUnavailable",
    "MalformedUpstreamResponse",
    "NoCredentialsConfigured",
    "RandomCredentialSelector",
    "SpotifyLyricsError",
    "TokenCache",
    "TokenExchanger",
    "UpstreamRequestFailed",
    "UpstreamUnavailable",
]
