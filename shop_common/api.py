# shop_common/api.py
from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from shop_common.errors import (
    ERROR_INVALID_REQUEST,
    ImmutableFieldError,
    InvalidCartItemError,
    InvalidProductError,
    NotFoundError,
    ShopError,
    StorageIOError,
)
from shop_common.logging import get_logger

logger = get_logger(__name__)

STATUS_BY_ERROR = (
    (NotFoundError, 404),
    (InvalidProductError, 400),
    (InvalidCartItemError, 400),
    (ImmutableFieldError, 400),
    (StorageIOError, 500),
)


def parse_id(raw: str, message: str) -> int:
    """Path segment as a positive integer id, 400 otherwise."""
    value = raw.strip()
    if not (value.isascii() and value.isdigit()) or int(value) < 1:
        raise HTTPException(status_code=400, detail=message)
    return int(value)


def status_for(error: ShopError) -> int:
    for error_class, status_code in STATUS_BY_ERROR:
        if isinstance(error, error_class):
            return status_code
    return 400


async def shop_error_handler(request: Request, exc: ShopError) -> JSONResponse:
    status_code = status_for(exc)
    if status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.debug(f"{request.method} {request.url.path} -> {status_code}: {exc.message}")
    return JSONResponse(status_code=status_code, content={"detail": exc.message})


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.debug(f"{request.method} {request.url.path} rejected: {exc.errors()}")
    return JSONResponse(
        status_code=400,
        content={"detail": ERROR_INVALID_REQUEST, "errors": jsonable_errors(exc)},
    )


def jsonable_errors(exc: RequestValidationError) -> list:
    return [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg", "")}
        for error in exc.errors()
    ]


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ShopError, shop_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
