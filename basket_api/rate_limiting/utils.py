import asyncio
import time
from typing import Optional
from fastapi import Request
from basket_api.rate_limiting.constants import _in_memory_counters,_in_memory_lock
from basket_api.rate_limiting.lua_scripts import LUA_FIXED_WINDOW_INCR_AND_PEXPIRE
from basket_api.rate_limiting.redis_client import redis_client

_script_sha: Optional[str] = None
_script_lock = asyncio.Lock()


async def _ensure_lua_loaded() -> Optional[str]:
    """
    Load the Lua script into Redis script cache and store SHA.
    Called once lazily.
    """
    global _script_sha
    if _script_sha:
        return _script_sha
    async with _script_lock:
        if _script_sha:
            return _script_sha
        try:
            _script_sha = await redis_client.script_load(LUA_FIXED_WINDOW_INCR_AND_PEXPIRE)
        except Exception:
            # fallback to EVAL (slower) in calls
            _script_sha = None
        return _script_sha


async def _identifier_from_request(request: Request):
    """
    user id from the query or the json body when present or fallback to ip
    """
    user_id = request.query_params.get("userId")
    if not user_id and request.headers.get("content-type", "").startswith("application/json"):
        # starlette caches the body , the route still parses it afterwards
        try:
            body = await request.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and isinstance(body.get("userId"), str):
            user_id = body["userId"]
    if user_id:
        return user_id, "user"
    # X-Forwarded-For: trust only when behind proper proxy
    xff = request.headers.get("X-Forwarded-For")
    if xff:
        client_host = xff.split(",")[0].strip()
    else:
        client_host = request.client.host if request.client else "unknown"
    return client_host or "unknown", "ip"


# simple non distributed fallback for redis unavailability , use only for short outages
async def _in_memory_allow(key: str, limit: int, window: int):
    """
    Per-process fixed-window counter.
    Returns (allowed, remaining, reset_ts)
    """
    async with _in_memory_lock:
        now = int(time.time())
        existing = _in_memory_counters.get(key)
        if not existing or existing["expires_at"] <= now:
            _in_memory_counters[key] = {"count": 1, "expires_at": now + window}
            return True, max(0, limit - 1), now + window

        if existing["count"] >= limit:
            return False, 0, existing["expires_at"]

        existing["count"] += 1
        return True, max(0, limit - existing["count"]), existing["expires_at"]
