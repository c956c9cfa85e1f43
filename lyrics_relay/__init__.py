"""Relay for time-synced Spotify lyrics backed by a pool of sp_dc cookies."""

__all__ = ["__version__", "PROJECT_NAME"]

PROJECT_NAME = "lyrics-relay"
__version__ = "0.3.0"
