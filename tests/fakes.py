"""Scripted fake of the Spotify web player endpoints."""

import asyncio
import time
from collections import deque

import httpx

TOKEN_URL = "https://open.spotify.test/get_access_token"
LYRICS_URL = "https://spclient.spotify.test/color-lyrics/v2/track/"


def now_ms() -> int:
    return int(time.time() * 1000)


class FakeSpotify:
    """MockTransport handler that records calls per endpoint.

    Token answers are consumed in order and the last one repeats. Lyrics
    answers are keyed by track id; unknown tracks get a 404.
    """

    def __init__(self) -> None:
        self.token_answers: deque[tuple[int, object]] = deque()
        self.lyrics_answers: dict[str, tuple[int, object]] = {}
        self.token_requests: list[httpx.Request] = []
        self.lyrics_requests: list[httpx.Request] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.delay = 0.0

    def queue_token(self, token: str = "T1", expires_at_ms: int | None = None) -> None:
        if expires_at_ms is None:
            expires_at_ms = now_ms() + 3_600_000
        self.token_answers.append(
            (
                200,
                {
                    "clientId": "d8a5ed958d274c2e8ee717e6a4b0971d",
                    "accessToken": token,
                    "accessTokenExpirationTimestampMs": expires_at_ms,
                    "isAnonymous": False,
                },
            )
        )

    def queue_token_answer(self, status: int, body: object) -> None:
        self.token_answers.append((status, body))

    def set_lyrics(self, track_id: str, lyrics: object) -> None:
        self.lyrics_answers[track_id] = (200, {"lyrics": lyrics, "hasVocalRemoval": False})

    def set_lyrics_answer(self, track_id: str, status: int, body: object) -> None:
        self.lyrics_answers[track_id] = (status, body)

    @property
    def exchanges(self) -> int:
        return len(self.token_requests)

    @staticmethod
    def _respond(answer: tuple[int, object]) -> httpx.Response:
        status, body = answer
        if isinstance(body, (bytes, str)):
            return httpx.Response(status, content=body)
        if body is None:
            return httpx.Response(status)
        return httpx.Response(status, json=body)

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            url = str(request.url)
            if url.startswith(TOKEN_URL):
                self.token_requests.append(request)
                if not self.token_answers:
                    return httpx.Response(503)
                if len(self.token_answers) > 1:
                    return self._respond(self.token_answers.popleft())
                return self._respond(self.token_answers[0])
            if url.startswith(LYRICS_URL):
                self.lyrics_requests.append(request)
                track_id = request.url.path.rsplit("/", 1)[-1]
                return self._respond(self.lyrics_answers.get(track_id, (404, None)))
            return httpx.Response(404)
        finally:
            self.in_flight -= 1


