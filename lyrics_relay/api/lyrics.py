from typing import Any

from fastapi import APIRouter, Depends

from ..spotify import LyricsClient
from .deps import get_lyrics_client, require_api_key

router = APIRouter(tags=["lyrics"])


@router.get("/lyrics/{track_id}", dependencies=[Depends(require_api_key)])
async def get_lyrics(
    track_id: str, client: LyricsClient = Depends(get_lyrics_client)
) -> Any:
    """Time-synced lyrics for a Spotify track id, as Spotify returns them."""
    return await client.get_lyrics(track_id)
