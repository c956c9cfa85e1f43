import hashlib
import logging
import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from ..errors import json_error
from ..logging_config import req_id_var

logger = logging.getLogger(__name__)

_EXEMPT_PATHS = {"/", "/healthz"}


def _route_group(path: str) -> str:
    # "/lyrics/<track_id>" counts as "/lyrics" so track ids share one budget
    head = path.strip("/").split("/", 1)[0]
    return f"/{head}"


def _key(client_ip: str, route: str, api_key: str | None) -> str:
    raw = f"{client_ip}|{route}|{api_key or 'anon'}"
    return hashlib.sha256(raw.encode()).hexdigest()


def _bearer(request: Request) -> str | None:
    auth = request.headers.get("authorization") or ""
    if auth.startswith("Bearer "):
        return auth[len("Bearer "):].strip() or None
    return None


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Fixed-window, in-process request counter.

    Callers are told apart by client IP, top-level route and bearer key.
    Counters only live for the current window. A limit of 0 turns the
    middleware into a pass-through.
    """

    def __init__(
        self,
        app: ASGIApp,
        max_requests: int = 0,
        window_seconds: int = 60,
        clock=time.time,
    ) -> None:
        super().__init__(app)
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._slot: int | None = None
        self._buckets: dict[str, int] = {}

    async def dispatch(self, request: Request, call_next):
        p = request.url.path
        if (
            self.max_requests <= 0
            or request.method == "OPTIONS"
            or p in _EXEMPT_PATHS
        ):
            return await call_next(request)

        ip = request.client.host if request.client else "0.0.0.0"
        route = _route_group(p)
        k = _key(ip, route, _bearer(request))
        now = int(self._clock())
        slot = now // self.window_seconds

        if slot != self._slot:
            # Counters from earlier windows can never be hit again
            self._buckets.clear()
            self._slot = slot
        cnt = self._buckets[k] = self._buckets.get(k, 0) + 1

        remaining = max(0, self.max_requests - cnt)
        reset_in = self.window_seconds - (now % self.window_seconds)
        headers = {
            "X-RateLimit-Limit": str(self.max_requests),
            "X-RateLimit-Remaining": str(remaining),
            "X-RateLimit-Reset": str(reset_in),
        }

        if cnt > self.max_requests:
            logger.warning(
                "http.rate_limited",
                extra={"meta": {"path": p, "route": route, "client": ip, "count": cnt}},
            )
            return json_error(
                "rate_limited",
                "Too many requests",
                429,
                meta={"request_id": req_id_var.get(), "retry_after": reset_in},
                headers={**headers, "Retry-After": str(reset_in)},
            )

        response = await call_next(request)
        for name, value in headers.items():
            response.headers.setdefault(name, value)
        return response
