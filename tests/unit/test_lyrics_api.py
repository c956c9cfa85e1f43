import httpx
import pytest
from httpx import ASGITransport

from lyrics_relay import __version__
from lyrics_relay.main import create_app


@pytest.fixture
def make_client(settings, lyrics_client):
    def _make(**overrides):
        app = create_app(settings.model_copy(update=overrides), lyrics_client=lyrics_client)
        return httpx.AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver")

    return _make


@pytest.fixture
async def async_client(make_client):
    async with make_client() as client:
        yield client


@pytest.mark.asyncio
async def test_root_reports_name_and_version(async_client):
    r = await async_client.get("/")

    assert r.status_code == 200
    assert r.text == f"lyrics-relay v{__version__}"


@pytest.mark.asyncio
async def test_healthz_does_not_call_upstream(async_client, fake_spotify):
    r = await async_client.get("/healthz")

    assert r.json() == {"status": "ok", "credentials": 1}
    assert fake_spotify.exchanges == 0


@pytest.mark.asyncio
async def test_lyrics_route_returns_payload(async_client, fake_spotify):
    fake_spotify.queue_token("T1")
    fake_spotify.set_lyrics("abc123", {"lines": []})

    r = await async_client.get("/lyrics/abc123")

    assert r.status_code == 200
    assert r.json() == {"lines": []}
    assert fake_spotify.exchanges == 1
    assert r.headers["X-Request-ID"]


@pytest.mark.asyncio
async def test_upstream_failure_is_opaque(async_client, fake_spotify):
    fake_spotify.queue_token("T1")

    r = await async_client.get("/lyrics/unknown", headers={"X-Request-ID": "req-42"})

    assert r.status_code == 500
    body = r.json()
    assert body["code"] == "internal_error"
    assert body["message"] == "Something went wrong"
    assert body["meta"]["request_id"] == "req-42"
    assert "404" not in r.text
    assert "spotify" not in r.text.lower()
    assert r.headers["X-Request-ID"] == "req-42"


@pytest.mark.asyncio
async def test_api_key_required_when_configured(make_client, fake_spotify):
    fake_spotify.queue_token("T1")
    fake_spotify.set_lyrics("abc123", {"lines": []})

    async with make_client(api_keys=["k1", "k2"]) as client:
        missing = await client.get("/lyrics/abc123")
        wrong = await client.get("/lyrics/abc123", headers={"Authorization": "Bearer nope"})
        basic = await client.get("/lyrics/abc123", headers={"Authorization": "Basic azE6"})
        ok = await client.get("/lyrics/abc123", headers={"Authorization": "Bearer k2"})

    assert missing.status_code == 401
    assert missing.json()["code"] == "unauthorized"
    assert wrong.status_code == 401
    assert wrong.json()["message"] == "Invalid API key"
    assert basic.status_code == 401
    assert ok.status_code == 200
    assert fake_spotify.exchanges == 1


@pytest.mark.asyncio
async def test_root_is_public_with_api_keys(make_client):
    async with make_client(api_keys=["k1"]) as client:
        r = await client.get("/")

    assert r.status_code == 200


@pytest.mark.asyncio
async def test_rate_limit_returns_429(make_client, fake_spotify):
    fake_spotify.queue_token("T1")
    fake_spotify.set_lyrics("abc123", {"lines": []})

    async with make_client(rate_limit_per_min=2) as client:
        first = await client.get("/lyrics/abc123")
        second = await client.get("/lyrics/abc123")
        third = await client.get("/lyrics/abc123")
        health = await client.get("/healthz")

    assert [first.status_code, second.status_code] == [200, 200]
    assert first.headers["X-RateLimit-Remaining"] == "1"
    assert third.status_code == 429
    assert third.json()["code"] == "rate_limited"
    assert int(third.headers["Retry-After"]) > 0
    assert health.status_code == 200
    assert len(fake_spotify.lyrics_requests) == 2


def test_create_app_without_cookies_refuses_to_start(settings):
    from lyrics_relay.spotify import NoCredentialsConfigured

    with pytest.raises(NoCredentialsConfigured):
        create_app(settings.model_copy(update={"cookies": []}))
