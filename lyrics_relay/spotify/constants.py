from __future__ import annotations

TOKEN_URL = (
    "https://open.spotify.com/get_access_token"
    "?reason=transport&productType=web_player"
)
LYRICS_URL = "https://spclient.wg.spotify.com/color-lyrics/v2/track/"

# The web player endpoints reject requests that do not look like a browser
USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)
APP_PLATFORM = "WebPlayer"
CONTENT_TYPE = "text/html"

LYRICS_PARAMS = {"format": "json", "market": "from_token"}
