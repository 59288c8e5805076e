from typing import Any, Dict, Optional, Protocol
import httpx
from basket_api.common.custom_exceptions import DependencyFailure
from basket_api.common.logging_setup import get_logger
from basket_api.config.settings import config_settings

logger = get_logger("basket.push")

TRANSIENT_EXCEPTIONS = (httpx.TimeoutException, httpx.NetworkError, httpx.RemoteProtocolError)


class PushSender(Protocol):

    @property
    def available(self) -> bool: ...

    async def send(self, payload: Dict[str, Any], topic: str) -> bool: ...


class HttpPushSender:
    """
    Delivers data messages to a topic through an HTTP push gateway.

    payload: {type, title, body, productId, count} , all values sent as strings
    topic: user scoped topic e.g. "user_<id>"
    """

    def __init__(self, gateway_url: Optional[str], api_key: Optional[str] = None, timeout: float = 10.0,
                 client: Optional[httpx.AsyncClient] = None):
        self.gateway_url = gateway_url
        self.api_key = api_key
        self.timeout = timeout
        self._client = client

    @property
    def available(self) -> bool:
        return bool(self.gateway_url)

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            headers = {"Content-Type": "application/json"}
            if self.api_key:
                headers["Authorization"] = f"Bearer {self.api_key}"
            self._client = httpx.AsyncClient(timeout=self.timeout, headers=headers)
        return self._client

    async def send(self, payload: Dict[str, Any], topic: str) -> bool:
        if not self.available:
            raise DependencyFailure("push gateway not configured")

        message = {
            "topic": topic,
            "data": {k: str(v) for k, v in payload.items() if v is not None},
        }
        try:
            resp = await self._get_client().post(self.gateway_url, json=message)
            resp.raise_for_status()
        except TRANSIENT_EXCEPTIONS as ex:
            logger.warning("push.send.transient_error", extra={"topic": topic, "error": str(ex)})
            raise DependencyFailure(f"push gateway unreachable: {ex}") from ex
        except httpx.HTTPStatusError as ex:
            status_code = ex.response.status_code if ex.response is not None else None
            logger.warning("push.send.rejected", extra={"topic": topic, "http_status": status_code})
            return False
        return True

    async def aclose(self):
        if self._client is not None:
            await self._client.aclose()
            self._client = None


push_sender = HttpPushSender(
    config_settings.PUSH_GATEWAY_URL,
    api_key=config_settings.PUSH_API_KEY,
    timeout=config_settings.PUSH_TIMEOUT_SECONDS,
)


def get_push_sender() -> PushSender:
    return push_sender
