from basket_api.common.logging_setup import get_logger

logger = get_logger("basket.basket")

DEFAULT_SOURCE = "amazon_in"
DEFAULT_CURRENCY = "INR"

# source -> (affiliate tag, marketplace domain) , anything not listed uses the default pair
AFFILIATE_BY_SOURCE = {
    "amazon_us": ("aviders-20", "amazon.com"),
}
DEFAULT_AFFILIATE = ("aviders-21", "amazon.in")

WISHLIST_URL_TEMPLATE = "https://www.{domain}/hz/wishlist/ls/{wishlist_id}?ref_=wl_share&tag={tag}"
