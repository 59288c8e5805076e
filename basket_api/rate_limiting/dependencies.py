import time
from typing import Optional
from fastapi import HTTPException, Request,status
from basket_api.config.settings import config_settings
from basket_api.rate_limiting.constants import DEFAULT_LIMIT, DEFAULT_WINDOW, RATE_LIMIT_PREFIX
from basket_api.rate_limiting.rate_limit_fixed_window import redis_allow
from basket_api.rate_limiting.utils import _identifier_from_request


def rate_limit_dependency(limit=DEFAULT_LIMIT, window=DEFAULT_WINDOW, route_key: Optional[str] = None):
    async def _dep(request: Request):
        key_route = route_key or request.url.path
        identifier, scope = await _identifier_from_request(request)
        key = f"{RATE_LIMIT_PREFIX}:{scope}:{identifier}:{key_route}"
        allowed, remaining, reset = await redis_allow(key, limit, window)
        request.state.rate_limit = {"limit": limit, "remaining": remaining, "reset": reset}
        if not allowed:
            retry_after = max(0, reset - int(time.time()))
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail="Too many requests",
                headers={"Retry-After": str(retry_after)}
        )
    return _dep


checkout_rate_limit = rate_limit_dependency(
    limit=config_settings.CHECKOUT_RATE_LIMIT, window=config_settings.RATE_LIMIT_WINDOW, route_key="checkout")

remind_rate_limit = rate_limit_dependency(
    limit=config_settings.REMIND_RATE_LIMIT, window=config_settings.RATE_LIMIT_WINDOW, route_key="remind")
