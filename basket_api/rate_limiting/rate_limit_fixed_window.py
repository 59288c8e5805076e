import time
from typing import Tuple
from basket_api.rate_limiting.constants import FAIL_OPEN, USE_IN_MEMORY_FALLBACK, logger
from basket_api.rate_limiting.lua_scripts import LUA_FIXED_WINDOW_INCR_AND_PEXPIRE
from basket_api.rate_limiting.redis_client import redis_client
from basket_api.rate_limiting.utils import _ensure_lua_loaded, _in_memory_allow

Decision = Tuple[bool, int, int]    # (allowed, remaining, reset_ts)


async def _incr_window(key: str, window: int):
    sha = await _ensure_lua_loaded()
    if sha:
        return await redis_client.evalsha(sha, 1, key, int(window * 1000))
    return await redis_client.eval(LUA_FIXED_WINDOW_INCR_AND_PEXPIRE, 1, key, int(window * 1000))


def _decide(res, limit: int, window: int) -> Decision:
    now = int(time.time())
    if not res or len(res) < 2:
        # script gave nothing usable , let the request through
        return True, max(0, limit - 1), now + window

    count, ttl_ms = int(res[0]), int(res[1])
    reset_ts = now + ttl_ms // 1000 if ttl_ms > 0 else now + window
    if count > limit:
        return False, 0, reset_ts
    return True, limit - count, reset_ts


async def redis_allow(key: str, limit: int, window: int) -> Decision:
    """One fixed-window hit for ``key``. Redis outages degrade to the per-process counter."""
    try:
        res = await _incr_window(key, window)
    except Exception as e:
        logger.warning("rate_limit.redis_error", extra={"key": key, "error": str(e)})
        if USE_IN_MEMORY_FALLBACK:
            return await _in_memory_allow(key, limit, window)
        return FAIL_OPEN, (max(0, limit - 1) if FAIL_OPEN else 0), int(time.time()) + window

    return _decide(res, limit, window)
