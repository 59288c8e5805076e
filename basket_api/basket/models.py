from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


# request bodies stay permissive , required fields and enums are checked by the services
# so a missing field is a 400 with a message rather than a bare 422
class _CamelIn(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class BasketItemIn(_CamelIn):
    user_id: Optional[str] = None
    email: Optional[str] = None
    product_id: Optional[str] = None
    frequency: Optional[Dict[str, Any]] = None
    price_at_add: Optional[float] = None
    currency: Optional[str] = None
    source: Optional[str] = None
    affiliate_url: Optional[str] = None
    title: Optional[str] = None
    image: Optional[str] = None
    quantity: Any = 1


class BasketItemKeyIn(_CamelIn):
    user_id: Optional[str] = None
    product_id: Optional[str] = None


class ClearBasketIn(_CamelIn):
    user_id: Optional[str] = None


class StatusIn(_CamelIn):
    user_id: Optional[str] = None
    product_id: Optional[str] = None
    status: Optional[str] = None


class ScheduleIn(_CamelIn):
    frequency: Optional[Dict[str, Any]] = None


class QuantityIn(_CamelIn):
    quantity: Any = None


class CheckoutIn(_CamelIn):
    user_id: Optional[str] = None
    selected_product_ids: Optional[List[str]] = None
