"""Exception handlers rendering every failure as ``{"error": ..., "messages": ...}``."""

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from protean.exceptions import ExpectedVersionError, ObjectNotFoundError, ValidationError

from storefront.errors import InvalidState, NotFound, StorefrontError, ValidationFailed

logger = structlog.get_logger(__name__)


def _messages(exc) -> dict:
    messages = getattr(exc, "messages", None)
    if isinstance(messages, dict):
        return messages
    return {"_entity": [str(messages or exc)]}


def _render(error: StorefrontError) -> JSONResponse:
    return JSONResponse(status_code=error.status_code, content=error.to_dict())


async def storefront_error_handler(request: Request, exc: StorefrontError) -> JSONResponse:
    log = logger.error if exc.status_code >= 500 else logger.info
    log("request_rejected", path=request.url.path, reason=exc.reason, detail=exc.message)
    return _render(exc)


async def not_found_handler(request: Request, exc: ObjectNotFoundError) -> JSONResponse:
    logger.info("request_rejected", path=request.url.path, reason=NotFound.reason)
    return _render(NotFound(_messages(exc)))


async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    logger.info("request_rejected", path=request.url.path, reason=ValidationFailed.reason)
    return _render(ValidationFailed(_messages(exc)))


async def version_conflict_handler(request: Request, exc: ExpectedVersionError) -> JSONResponse:
    # A write whose guard held at load time lost the race to a concurrent update.
    logger.warning("request_conflict", path=request.url.path, detail=str(exc))
    return _render(InvalidState("The record changed concurrently, reload and retry"))


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    messages = {}
    for error in exc.errors():
        field = ".".join(str(part) for part in error["loc"] if part != "body") or "_entity"
        messages.setdefault(field, []).append(error["msg"])
    logger.info("request_rejected", path=request.url.path, reason=ValidationFailed.reason)
    return _render(ValidationFailed(messages))


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StorefrontError, storefront_error_handler)
    app.add_exception_handler(ObjectNotFoundError, not_found_handler)
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(ExpectedVersionError, version_conflict_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
