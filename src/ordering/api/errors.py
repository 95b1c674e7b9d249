"""Exception handlers rendering every failure as ``{success: false, message}``."""

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from protean.exceptions import ObjectNotFoundError, ValidationError

from ordering.errors import StorefrontError

logger = structlog.get_logger(__name__)


def _failure(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message})


def _validation_message(messages) -> str:
    if isinstance(messages, dict):
        parts = []
        for field, errors in messages.items():
            errors = errors if isinstance(errors, list) else [errors]
            parts.append(f"{field}: {', '.join(str(e) for e in errors)}")
        return "; ".join(parts)
    return str(messages)


async def storefront_error_handler(request: Request, exc: StorefrontError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("request_failed", path=request.url.path, error=exc.message, status_code=exc.status_code)
    return _failure(exc.status_code, exc.message)


async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return _failure(400, _validation_message(exc.messages))


async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    message = "; ".join(
        f"{'.'.join(str(p) for p in err['loc'] if p != 'body')}: {err['msg']}" for err in exc.errors()
    )
    return _failure(400, message or "Invalid request")


async def not_found_handler(request: Request, exc: ObjectNotFoundError) -> JSONResponse:
    return _failure(404, "Resource not found")


async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_error", path=request.url.path, method=request.method)
    return _failure(500, "Server Error")


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StorefrontError, storefront_error_handler)
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(ObjectNotFoundError, not_found_handler)
    app.add_exception_handler(Exception, unexpected_error_handler)
