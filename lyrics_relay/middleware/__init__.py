from .rate_limit import RateLimitMiddleware
from .request_id import RequestIDMiddleware

__all__ = ["RateLimitMiddleware", "RequestIDMiddleware"]
