"""Error responses and logging for the DomainStream API.

Errors raised before a streaming response starts are turned into the JSON
`ErrorResponse` envelope here. Production responses only carry a correlation
ID and an error type; development responses add details and tracebacks.
Log records get the request's correlation ID attached, and anything that
looks like an upstream credential is redacted before it is logged.
"""

import logging
import sys
import traceback
import uuid
from contextvars import ContextVar
from typing import Any

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from pythonjsonlogger.json import JsonFormatter
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from core.config import get_settings
from core.exceptions import DomainStreamError, SuffixListUnavailableError
from core.security_config import get_allowed_error_fields, is_sensitive_key
from schemas.api import ErrorResponse


_correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)

logger = logging.getLogger(__name__)

REDACTED = "[REDACTED]"

# (status, error type, public message). Only errors raised before a
# response starts need an entry; the rest get the generic domain error.
DOMAIN_ERROR_RESPONSES: dict[type[DomainStreamError], tuple[int, str, str]] = {
    SuffixListUnavailableError: (
        503,
        "suffix_list_unavailable",
        "Domain suffix list is currently unavailable",
    ),
}
_FALLBACK_DOMAIN_RESPONSE = (500, "domain_error", "Domain error")


def get_correlation_id() -> str:
    """Return the current correlation ID, creating one outside a request."""
    correlation_id = _correlation_id_var.get()
    if not correlation_id:
        correlation_id = str(uuid.uuid4())
        _correlation_id_var.set(correlation_id)
    return correlation_id


def set_correlation_id(correlation_id: str | None) -> None:
    _correlation_id_var.set(correlation_id)


class CorrelationIdFilter(logging.Filter):
    """Stamp every record with the active correlation ID."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = _correlation_id_var.get() or "-"
        return True


class StructuredLogger:
    """Logger that attaches sanitized key/value fields to each record.

    Field names matching `SENSITIVE_KEYS` are redacted, including inside
    nested dicts and lists and in `{"name": ..., "value": ...}` header pairs.
    """

    def __init__(self, logger_name: str):
        self.logger = logging.getLogger(logger_name)

    def log(
        self, level: int, message: str, *, exc_info: bool = False, **fields: Any
    ) -> None:
        correlation_id = get_correlation_id()
        structured = {"correlation_id": correlation_id, **self._sanitize_data(fields)}
        if get_settings().ENVIRONMENT != "production":
            message = f"[{correlation_id}] {message}"
        self.logger.log(
            level, message, extra={"structured_data": structured}, exc_info=exc_info
        )

    def info(self, message: str, **fields: Any) -> None:
        self.log(logging.INFO, message, **fields)

    def warning(self, message: str, **fields: Any) -> None:
        self.log(logging.WARNING, message, **fields)

    def error(self, message: str, **fields: Any) -> None:
        self.log(logging.ERROR, message, **fields)

    def exception(self, message: str, **fields: Any) -> None:
        self.log(logging.ERROR, message, exc_info=True, **fields)

    def _sanitize_data(self, data: dict[str, Any]) -> dict[str, Any]:
        if not isinstance(data, dict):
            return {}
        header = self._redact_header_like(data)
        if header is not None:
            return header
        return {
            key: REDACTED if is_sensitive_key(key) else self._sanitize_value(value)
            for key, value in data.items()
        }

    def _sanitize_value(self, value: Any) -> Any:
        if isinstance(value, dict):
            return self._sanitize_data(value)
        if isinstance(value, list | tuple):
            return [self._sanitize_value(item) for item in value]
        return value

    def _redact_header_like(self, data: dict[str, Any]) -> dict[str, Any] | None:
        """Redact the value of a sensitive name/value pair, else return None."""
        if "value" not in data:
            return None
        header_name = data.get("name") or data.get("key")
        if not isinstance(header_name, str) or not is_sensitive_key(header_name):
            return None
        return {
            key: REDACTED if key == "value" else self._sanitize_value(value)
            for key, value in data.items()
        }


structured_logger = StructuredLogger(__name__)


class ExceptionNormalizationMiddleware(BaseHTTPMiddleware):
    """Catch any uncaught Exception and delegate to global_exception_handler."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:  # noqa: BLE001
            return await global_exception_handler(request, exc)


def _build_error_response(
    *,
    correlation_id: str,
    error_type: str,
    message: str,
    environment: str,
    details: dict[str, Any] | None = None,
    traceback_str: str | None = None,
    exception_type: str | None = None,
    validation_errors: Any | None = None,
    status_code: int = 500,
) -> JSONResponse:
    """Render the error envelope, keeping only fields allowed in `environment`."""
    optional = {
        "details": details,
        "traceback": traceback_str,
        "exception_type": exception_type,
        "validation_errors": validation_errors,
    }
    allowed = get_allowed_error_fields(environment)
    error_body: dict[str, Any] = {"correlation_id": correlation_id, "type": error_type}
    error_body.update(
        (field, value)
        for field, value in optional.items()
        if field in allowed and value not in (None, {}, "")
    )
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(message=message, error=error_body).model_dump(),
    )


def _http_error(exc: StarletteHTTPException, environment: str) -> JSONResponse:
    return _build_error_response(
        correlation_id=get_correlation_id(),
        error_type="http_error",
        message="An HTTP error occurred",
        environment=environment,
        details={"detail": exc.detail},
        exception_type=type(exc).__name__,
        status_code=exc.status_code,
    )


def _validation_error(
    exc: ValidationError | RequestValidationError, environment: str
) -> JSONResponse:
    errors = exc.errors()
    structured_logger.warning("Validation error", validation_errors=errors)
    return _build_error_response(
        correlation_id=get_correlation_id(),
        error_type="validation_error",
        message="Invalid request data provided",
        environment=environment,
        validation_errors=errors,
        status_code=422,
    )


def _domain_error(exc: DomainStreamError, environment: str) -> JSONResponse:
    status_code, error_type, message = DOMAIN_ERROR_RESPONSES.get(
        type(exc), _FALLBACK_DOMAIN_RESPONSE
    )
    structured_logger.warning(
        "Request failed before streaming",
        error_type=error_type,
        exception_type=type(exc).__name__,
        reason=str(exc),
    )
    return _build_error_response(
        correlation_id=get_correlation_id(),
        error_type=error_type,
        message=message,
        environment=environment,
        details={"detail": str(exc)},
        exception_type=type(exc).__name__,
        status_code=status_code,
    )


def _unhandled_error(exc: Exception, environment: str) -> JSONResponse:
    structured_logger.exception(
        "Unhandled exception", exception_type=type(exc).__name__, error=str(exc)
    )
    return _build_error_response(
        correlation_id=get_correlation_id(),
        error_type="internal_server_error",
        message="An internal error occurred",
        environment=environment,
        traceback_str="".join(traceback.format_exception(exc)).strip(),
        exception_type=type(exc).__name__,
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Map any exception raised before a response starts to the error envelope.

    Once a streaming body has started, failures are handled inside the
    stream and never reach this handler.
    """
    environment = get_settings().ENVIRONMENT

    if isinstance(exc, StarletteHTTPException):
        return _http_error(exc, environment)
    if isinstance(exc, ValidationError | RequestValidationError):
        return _validation_error(exc, environment)
    if isinstance(exc, DomainStreamError):
        return _domain_error(exc, environment)
    return _unhandled_error(exc, environment)


def setup_logging() -> None:
    """Install a single stdout handler on the root logger.

    Production logs are JSON objects; other environments get one readable
    line per record. Safe to call more than once.
    """
    settings = get_settings()
    root_logger = logging.getLogger()
    if root_logger.handlers:
        return

    production = settings.ENVIRONMENT == "production"
    log_level = logging.DEBUG if settings.ENVIRONMENT == "development" else logging.INFO

    formatter: logging.Formatter
    if production:
        formatter = JsonFormatter(
            "%(asctime)s %(levelname)s %(name)s %(correlation_id)s %(message)s",
            rename_fields={"asctime": "timestamp", "levelname": "level"},
        )
    else:
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    handler.setLevel(log_level)
    handler.addFilter(CorrelationIdFilter())

    root_logger.setLevel(log_level)
    root_logger.addHandler(handler)

    if production:
        # Per-request access lines and httpx request logs are too chatty
        logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
        logging.getLogger("httpx").setLevel(logging.WARNING)
