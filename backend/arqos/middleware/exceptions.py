"""Custom exception handlers for consistent error responses.

Every error leaves the API as:
    {"error": {"code": "...", "message": "...", "details": {...}}}
"""

import logging
import traceback
from typing import Union

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from sqlalchemy.exc import OperationalError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class ArqosException(Exception):
    """Base exception for ArqOS application errors."""

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        error_code: str = "INTERNAL_ERROR",
        details: Union[dict, list, None] = None,
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details
        super().__init__(self.message)


class UnauthenticatedError(ArqosException):
    """No acting profile / session."""

    def __init__(self, message: str = "Usuário não autenticado"):
        super().__init__(
            message=message,
            status_code=status.HTTP_401_UNAUTHORIZED,
            error_code="UNAUTHENTICATED",
        )


# Service error codes with a dedicated HTTP status; everything else is a 500.
_SERVICE_CODE_STATUS = {
    "UNAUTHENTICATED": status.HTTP_401_UNAUTHORIZED,
    "NOT_FOUND": status.HTTP_404_NOT_FOUND,
    "VALIDATION_ERROR": status.HTTP_422_UNPROCESSABLE_ENTITY,
}


def exception_from_service_error(message: str, code: str) -> ArqosException:
    """Turn a `{message, code}` service error into a raisable exception."""
    return ArqosException(
        message=message,
        status_code=_SERVICE_CODE_STATUS.get(
            code, status.HTTP_500_INTERNAL_SERVER_ERROR
        ),
        error_code=code,
    )


def create_error_response(
    status_code: int,
    message: str,
    error_code: str = "ERROR",
    details: Union[dict, list, None] = None,
    headers: dict | None = None,
) -> JSONResponse:
    """Build the `{"error": {...}}` envelope."""
    error = {"code": error_code, "message": message}
    if details:
        error["details"] = details
    return JSONResponse(
        status_code=status_code, content={"error": error}, headers=headers
    )


def _request_extra(request: Request, **extra) -> dict:
    return {"path": request.url.path, "method": request.method, **extra}


async def arqos_exception_handler(
    request: Request,
    exc: ArqosException,
) -> JSONResponse:
    logger.warning(
        f"{exc.error_code}: {exc.message}",
        extra=_request_extra(request, error_code=exc.error_code),
    )
    return create_error_response(
        status_code=exc.status_code,
        message=exc.message,
        error_code=exc.error_code,
        details=exc.details,
    )


async def http_exception_handler(
    request: Request,
    exc: StarletteHTTPException,
) -> JSONResponse:
    """Routing errors (404, 405) and explicit HTTPExceptions."""
    if exc.status_code >= 500:
        logger.error(
            f"HTTP {exc.status_code}: {exc.detail}", extra=_request_extra(request)
        )
    return create_error_response(
        status_code=exc.status_code,
        message=str(exc.detail),
        error_code=f"HTTP_{exc.status_code}",
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(
    request: Request,
    exc: Union[RequestValidationError, ValidationError],
) -> JSONResponse:
    """Request bodies and params that fail pydantic validation → 422."""
    logger.warning(
        f"Validation error on {request.url.path}", extra=_request_extra(request)
    )
    errors = [
        {
            "field": " -> ".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]
    return create_error_response(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        message="Dados inválidos",
        error_code="VALIDATION_ERROR",
        details={"errors": errors},
    )


async def operational_exception_handler(
    request: Request,
    exc: OperationalError,
) -> JSONResponse:
    """Connection loss and similar → 503 so clients retry."""
    logger.error(
        f"Database unavailable on {request.url.path}: {exc}",
        extra=_request_extra(request),
    )
    return create_error_response(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        message="Banco de dados indisponível no momento. Tente novamente.",
        error_code="DATABASE_UNAVAILABLE",
    )


async def general_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    logger.error(
        f"Unhandled exception on {request.url.path}: {exc}",
        extra=_request_extra(request, traceback=traceback.format_exc()),
        exc_info=True,
    )
    return create_error_response(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        message="Erro interno do servidor",
        error_code="INTERNAL_SERVER_ERROR",
    )


def register_exception_handlers(app):
    """Register all custom exception handlers with FastAPI app."""
    app.add_exception_handler(ArqosException, arqos_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(ValidationError, validation_exception_handler)
    app.add_exception_handler(OperationalError, operational_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)
