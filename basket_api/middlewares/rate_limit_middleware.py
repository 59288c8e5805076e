from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request


class RateLimitHeadersMiddleware(BaseHTTPMiddleware):
    """Expose the state left by the per-route rate limit dependencies as response headers."""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        rl = getattr(request.state, "rate_limit", None)
        if rl:
            response.headers["X-RateLimit-Limit"] = str(rl["limit"])
            response.headers["X-RateLimit-Remaining"] = str(rl["remaining"])
            response.headers["X-RateLimit-Reset"] = str(rl["reset"])
        return response
