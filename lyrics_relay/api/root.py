from fastapi import APIRouter, Depends
from fastapi.responses import PlainTextResponse

from .. import PROJECT_NAME, __version__
from ..spotify import LyricsClient
from .deps import get_lyrics_client

router = APIRouter()


@router.get("/", response_class=PlainTextResponse, include_in_schema=False)
def root() -> str:
    return f"{PROJECT_NAME} v{__version__}"


@router.get("/healthz", tags=["health"])
def healthz(client: LyricsClient = Depends(get_lyrics_client)) -> dict:
    # Never touches Spotify
    return {"status": "ok", "credentials": client.credential_count}
