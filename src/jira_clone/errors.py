"""Domain errors and the JSON error envelope returned for them."""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any, Mapping

from fastapi import FastAPI, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.requests import Request

from .core.context import REQUEST_ID_HEADER, bound
from .schemas.system import ErrorResponse

logger = logging.getLogger(__name__)


class ApplicationError(Exception):
    """Base class for errors raised deliberately by the service layer."""

    default_message = "Application error."
    default_code = "application_error"
    default_status = status.HTTP_400_BAD_REQUEST

    def __init__(
        self,
        message: str | None = None,
        *,
        code: str | None = None,
        status_code: int | None = None,
        details: Any | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)
        self.code = code or self.default_code
        self.status_code = status_code or self.default_status
        self.details = details
        self.headers = dict(headers) if headers else None


class NotFoundError(ApplicationError):
    default_message = "Resource not found."
    default_code = "not_found"
    default_status = status.HTTP_404_NOT_FOUND


class ValidationError(ApplicationError):
    """A write was rejected before reaching the database."""

    default_message = "Validation failed."
    default_code = "validation_error"
    default_status = status.HTTP_422_UNPROCESSABLE_ENTITY


class AuthenticationError(ApplicationError):
    """Credentials or tokens were missing, invalid, expired or revoked."""

    default_message = "Could not validate credentials."
    default_code = "unauthorized"
    default_status = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str | None = None, **kwargs: Any) -> None:
        kwargs.setdefault("headers", {"WWW-Authenticate": "Bearer"})
        super().__init__(message, **kwargs)


class InvalidMoveError(ApplicationError):
    """A board move referenced a task, column or index that does not exist."""

    default_message = "Invalid board move."
    default_code = "invalid_move"
    default_status = status.HTTP_422_UNPROCESSABLE_ENTITY


class DatabaseIntegrityError(ApplicationError):
    default_message = "Database integrity violation."
    default_code = "db_integrity_error"
    default_status = status.HTTP_409_CONFLICT


class ServerError(ApplicationError):
    default_message = "Internal server error."
    default_code = "server_error"
    default_status = status.HTTP_500_INTERNAL_SERVER_ERROR


_HTTP_STATUS_CODE_MAP: dict[int, str] = {
    status.HTTP_400_BAD_REQUEST: "bad_request",
    status.HTTP_401_UNAUTHORIZED: "unauthorized",
    status.HTTP_403_FORBIDDEN: "forbidden",
    status.HTTP_404_NOT_FOUND: "not_found",
    status.HTTP_405_METHOD_NOT_ALLOWED: "method_not_allowed",
    status.HTTP_409_CONFLICT: "conflict",
}


def _request_id(request: Request) -> str | None:
    return getattr(request.state, "request_id", None)


def _with_request_id(request: Request, details: Any | None) -> Any | None:
    request_id = _request_id(request)
    if not request_id:
        return details
    if details is None:
        return {"request_id": request_id}
    if isinstance(details, dict):
        return {"request_id": request_id, **details}
    return {"request_id": request_id, "detail": details}


def error_response(
    request: Request,
    *,
    status_code: int,
    code: str,
    message: str,
    details: Any | None = None,
    headers: Mapping[str, str] | None = None,
) -> JSONResponse:
    """Render the standard error envelope for ``request``."""

    payload = ErrorResponse(
        code=code,
        message=message,
        details=_with_request_id(request, details),
    )
    response = JSONResponse(status_code=status_code, content=payload.model_dump(mode="json"))
    if headers:
        response.headers.update(headers)
    request_id = _request_id(request)
    if request_id:
        response.headers.setdefault(REQUEST_ID_HEADER, request_id)
    return response


def _describe_http_detail(status_code: int, detail: Any) -> tuple[str, Any | None]:
    if isinstance(detail, str):
        return detail, None
    try:
        phrase = HTTPStatus(status_code).phrase
    except ValueError:
        phrase = "Error"
    if detail is None:
        return phrase, None
    if isinstance(detail, list):
        return phrase, {"errors": detail}
    return phrase, detail


def _log_for(status_code: int):
    return logger.error if status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR else logger.warning


def register_exception_handlers(app: FastAPI) -> None:
    """Render every failure as the standard error envelope.

    Handlers for deliberate errors run inside the correlation middleware, so
    the request id is already bound when they log. The catch-all handler runs
    outside it and binds the id itself.
    """

    @app.exception_handler(ApplicationError)
    async def _handle_application_error(request: Request, exc: ApplicationError) -> JSONResponse:
        _log_for(exc.status_code)(
            "Application error encountered",
            extra={"code": exc.code, "status_code": exc.status_code},
        )
        return error_response(
            request,
            status_code=exc.status_code,
            code=exc.code,
            message=exc.message,
            details=exc.details,
            headers=exc.headers,
        )

    @app.exception_handler(RequestValidationError)
    async def _handle_request_validation_error(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        errors = jsonable_encoder(exc.errors())
        logger.warning("Request validation failed", extra={"errors": errors})
        return error_response(
            request,
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            code=ValidationError.default_code,
            message="Request validation failed.",
            details={"errors": errors},
        )

    @app.exception_handler(IntegrityError)
    async def _handle_integrity_error(request: Request, exc: IntegrityError) -> JSONResponse:
        logger.error("Database integrity error encountered", exc_info=exc)
        return error_response(
            request,
            status_code=DatabaseIntegrityError.default_status,
            code=DatabaseIntegrityError.default_code,
            message=DatabaseIntegrityError.default_message,
        )

    @app.exception_handler(StarletteHTTPException)
    async def _handle_http_exception(
        request: Request,
        exc: StarletteHTTPException,
    ) -> JSONResponse:
        code = _HTTP_STATUS_CODE_MAP.get(exc.status_code, "http_error")
        message, details = _describe_http_detail(exc.status_code, exc.detail)
        _log_for(exc.status_code)(
            "HTTP exception raised",
            extra={"code": code, "status_code": exc.status_code, "path": request.url.path},
        )
        return error_response(
            request,
            status_code=exc.status_code,
            code=code,
            message=message,
            details=details,
            headers=exc.headers or None,
        )

    @app.exception_handler(Exception)
    async def _handle_unhandled_exception(request: Request, exc: Exception) -> JSONResponse:
        with bound(request_id=_request_id(request)):
            logger.exception("Unhandled application error", exc_info=exc)
        return error_response(
            request,
            status_code=ServerError.default_status,
            code=ServerError.default_code,
            message=ServerError.default_message,
        )


__all__ = [
    "ApplicationError",
    "AuthenticationError",
    "DatabaseIntegrityError",
    "InvalidMoveError",
    "NotFoundError",
    "ServerError",
    "ValidationError",
    "error_response",
    "register_exception_handlers",
]
