from prometheus_fastapi_instrumentator import Instrumentator
from basket_api.api import version_prefix

instrumentator = Instrumentator(
    should_ignore_untemplated=True,      # /basket/item/<uuid> → /basket/item/{item_id}
    excluded_handlers=["/metrics", f"{version_prefix}/health"],
    should_instrument_requests_inprogress=True,
    should_group_status_codes=False,
)
