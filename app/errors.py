"""Mapping of service errors onto HTTP responses."""

from __future__ import annotations

import logging
import math
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import FastAPI, Request, status
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.schemas import ApiModel, ErrorResponse, FieldErrorOut, RouteNotFoundResponse
from services.errors import (
    InvalidRangeError,
    NotFoundError,
    ReadingValidationError,
    StorageError,
)

logger = logging.getLogger(__name__)


def _echo(value: Any) -> Any:
    """Make a received payload JSON-safe; NaN and infinities become strings."""
    if isinstance(value, float) and not math.isfinite(value):
        return str(value)
    if isinstance(value, dict):
        return {str(key): _echo(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_echo(item) for item in value]
    return value


def _error_body(response: ApiModel) -> Dict[str, Any]:
    """Serialised ``response`` without its unset top-level fields."""
    body = response.model_dump(mode="json", by_alias=True)
    return {key: value for key, value in body.items() if value is not None}


async def _validation_error(request: Request, exc: ReadingValidationError) -> JSONResponse:
    logger.warning(
        "Rejected sensor payload: %s",
        exc,
        extra={"path": request.url.path, "error_count": len(exc.errors)},
    )
    body = ErrorResponse(
        error="Invalid sensor data.",
        errors=[FieldErrorOut.from_error(error) for error in exc.errors],
        received=_echo(exc.received),
    )
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=_error_body(body))


async def _not_found(_request: Request, exc: NotFoundError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content=_error_body(ErrorResponse(message=str(exc))),
    )


async def _invalid_range(_request: Request, exc: InvalidRangeError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_error_body(ErrorResponse(error=str(exc))),
    )


async def _storage_error(request: Request, exc: StorageError) -> JSONResponse:
    logger.error(
        "Storage failure while serving request: %s",
        exc,
        extra={"method": request.method, "path": request.url.path},
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body(ErrorResponse(error="Internal server error.")),
    )


async def _route_not_found(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code != status.HTTP_404_NOT_FOUND:
        return await http_exception_handler(request, exc)
    body = RouteNotFoundResponse(
        path=request.url.path,
        method=request.method,
        timestamp=datetime.now(timezone.utc),
    )
    return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content=_error_body(body))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ReadingValidationError, _validation_error)
    app.add_exception_handler(NotFoundError, _not_found)
    app.add_exception_handler(InvalidRangeError, _invalid_range)
    app.add_exception_handler(StorageError, _storage_error)
    app.add_exception_handler(StarletteHTTPException, _route_not_found)
