"""Shared fixtures for the relay tests."""

import httpx
import pytest

from lyrics_relay.settings import Settings
from lyrics_relay.spotify import LyricsClient
from tests.fakes import LYRICS_URL, TOKEN_URL, FakeSpotify


@pytest.fixture
def fake_spotify() -> FakeSpotify:
    return FakeSpotify()


@pytest.fixture
async def http(fake_spotify):
    async with httpx.AsyncClient(transport=httpx.MockTransport(fake_spotify)) as client:
        yield client


@pytest.fixture
def settings(tmp_path, monkeypatch) -> Settings:
    # Keep a stray config.toml or .env in the cwd out of the tests
    monkeypatch.setenv("LYRICS_RELAY_CONFIG", str(tmp_path / "absent.toml"))
    monkeypatch.chdir(tmp_path)
    return Settings(
        cookies=["cookieA"],
        token_url=TOKEN_URL,
        lyrics_url=LYRICS_URL,
    )


@pytest.fixture
def lyrics_client(settings, http) -> LyricsClient:
    return LyricsClient.from_settings(settings, http=http)
