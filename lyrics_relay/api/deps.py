import logging
import secrets

from fastapi import Depends, HTTPException, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from ..settings import Settings
from ..spotify import LyricsClient

logger = logging.getLogger(__name__)

_bearer = HTTPBearer(auto_error=False)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_lyrics_client(request: Request) -> LyricsClient:
    return request.app.state.lyrics_client


def _known_key(candidate: str, api_keys: list[str]) -> bool:
    # Compare against every key so timing does not reveal a prefix match
    matched = False
    for key in api_keys:
        if secrets.compare_digest(candidate.encode(), key.encode()):
            matched = True
    return matched


async def require_api_key(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
    settings: Settings = Depends(get_settings),
) -> str | None:
    """Reject callers without a configured bearer key.

    No-op when ``api_keys`` is empty.
    """
    if not settings.auth_enabled:
        return None

    if credentials is None or credentials.scheme.lower() != "bearer":
        raise HTTPException(
            status_code=401,
            detail="Authorization header not found",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not _known_key(credentials.credentials, settings.api_keys):
        logger.warning("auth.invalid_api_key")
        raise HTTPException(
            status_code=401,
            detail="Invalid API key",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return credentials.credentials
