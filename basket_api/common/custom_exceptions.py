from fastapi import FastAPI, HTTPException, Request,status
from fastapi.exceptions import RequestValidationError
from basket_api.common.logging_setup import get_logger
from basket_api.common.utils import build_error, json_error
from basket_api.common.constants import request_id_ctx

logger = get_logger("basket.errors")


class BasketError(Exception):
    """Base for every error raised by the basket core."""
    code = "BASKET_ERROR"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(BasketError):
    """Missing or malformed input: required field, enum value, quantity < 1."""
    code = "VALIDATION_ERROR"
    status_code = status.HTTP_400_BAD_REQUEST


class NotFound(BasketError):
    code = "NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND


class DependencyFailure(BasketError):
    """The store or the push gateway is unreachable or erroring."""
    code = "DEPENDENCY_FAILURE"
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE


async def basket_error_handler(request: Request, exc: BasketError):
    rid = request_id_ctx.get(None)

    if isinstance(exc, DependencyFailure):
        logger.error("dependency.failure", extra={"path": request.url.path, "error": exc.message})
    else:
        logger.info("request.rejected", extra={"path": request.url.path, "code": exc.code, "error": exc.message})

    payload = build_error(code=exc.code, details={"message": exc.message}, request_id=rid)
    return json_error(payload, status_code=exc.status_code)


async def fallback_handler(request: Request, exc: Exception):

    rid = request_id_ctx.get(None)

    logger.error(
        "unexpected.exception",
        extra={
            "path": request.url.path,
            "method": request.method,
        },
        exc_info=exc,
    )

    payload = build_error(code="SERVER_ERROR", details={"message": "Internal Server Error"}, request_id=rid)
    return json_error(payload, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    rid = request_id_ctx.get(None)
    logger.warning(
        "request.validation_failed",
        extra={
            "errors": exc.errors(),
            "path": request.url.path,
        },
    )

    payload = build_error(code="UNPROCESSABLE_ENTITY", details={"message":"invalid request"}, request_id=rid)
    return json_error(payload, status_code=status.HTTP_422_UNPROCESSABLE_ENTITY)


async def http_exception_handler(request: Request, exc: HTTPException):

    rid = request_id_ctx.get(None)

    payload = build_error(code=f"HTTP_{exc.status_code}", details={"message":exc.detail}, request_id=rid)
    return json_error(payload, status_code=exc.status_code, headers=getattr(exc, "headers", None))


def register_all_exceptions(app: FastAPI):

    app.add_exception_handler(
        BasketError,
        basket_error_handler
    )

    app.add_exception_handler(
        Exception, # catch all unidentified/unhandled exceptions
        fallback_handler
    )

    app.add_exception_handler(
        RequestValidationError,
        validation_exception_handler
    )

    app.add_exception_handler(
        HTTPException,
        http_exception_handler
    )
