from fastapi import APIRouter
from basket_api.api import version_prefix
from basket_api.basket.routes import basket_router
from basket_api.common.routes import home_router


public_routers = APIRouter(prefix=version_prefix)

public_routers.include_router(basket_router, prefix="/basket", tags=["basket"])
public_routers.include_router(home_router, tags=["home"])
