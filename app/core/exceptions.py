"""Application-wide exception classes and handlers.

This module provides a consistent exception hierarchy for the application
and registers global exception handlers with FastAPI.
"""

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class AppError(Exception):
    """Base exception for application errors.

    All custom exceptions should inherit from this class.
    """

    def __init__(
        self,
        message: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        error_code: str = "INTERNAL_ERROR",
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details or {}
        super().__init__(message)


class ExternalServiceError(AppError):
    """External service error (502)."""

    def __init__(
        self,
        message: str = "Error en un servicio externo",
        service: str | None = None,
        reason: str | None = None,
        error_code: str = "EXTERNAL_SERVICE_ERROR",
    ):
        details: dict[str, Any] = {}
        if service:
            details["service"] = service
        if reason:
            details["reason"] = reason
        self.reason = reason
        super().__init__(
            message=message,
            status_code=status.HTTP_502_BAD_GATEWAY,
            error_code=error_code,
            details=details,
        )


class RecordStoreError(ExternalServiceError):
    """A read against the record store failed."""

    def __init__(self, reason: str, operation: str | None = None):
        message = "No se pudo leer la base de datos"
        if operation:
            message = f"{message} ({operation})"
        super().__init__(
            message=message,
            service="record_store",
            reason=reason,
            error_code="RECORD_STORE_ERROR",
        )


class RecordCountError(ExternalServiceError):
    """Counting activations failed; the summary cannot be built without it."""

    def __init__(self, message: str, reason: str | None = None):
        super().__init__(
            message=message,
            service="record_store",
            reason=reason,
            error_code="RECORD_COUNT_ERROR",
        )


class StorageListError(ExternalServiceError):
    """A directory listing failed while walking a bucket."""

    def __init__(self, bucket: str, directory: str, reason: str | None = None):
        self.bucket = bucket
        self.directory = directory
        super().__init__(
            message="No se pudo calcular uso del bucket de fotos",
            service="object_storage",
            reason=reason,
            error_code="STORAGE_LIST_ERROR",
        )
        self.details["bucket"] = bucket
        self.details["directory"] = directory


class SampleQueryError(ExternalServiceError):
    """Fetching the row sample for database size estimation failed."""

    def __init__(self, table: str, reason: str | None = None):
        self.table = table
        super().__init__(
            message=f"No se pudo obtener la muestra de filas de {table}",
            service="record_store",
            reason=reason,
            error_code="SAMPLE_QUERY_ERROR",
        )


class SizeProbeUnavailable(ExternalServiceError):
    """The direct database size probe failed or returned an unusable value."""

    def __init__(self, reason: str):
        super().__init__(
            message="Tamaño de base de datos no disponible",
            service="record_store",
            reason=reason,
            error_code="SIZE_PROBE_UNAVAILABLE",
        )


async def app_exception_handler(request: Request, exc: AppError) -> JSONResponse:
    """Handle AppError and return consistent JSON response."""
    logger.error(
        "AppError: %s (code=%s, status=%d)",
        exc.message,
        exc.error_code,
        exc.status_code,
        extra={"details": exc.details},
    )

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "error": {
                "code": exc.error_code,
                "message": exc.message,
                "details": exc.details if exc.details else None,
            },
        },
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unhandled exceptions with a generic error response."""
    logger.exception("Unhandled exception: %s", str(exc))

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "success": False,
            "error": {
                "code": "INTERNAL_ERROR",
                "message": "Ocurrió un error inesperado",
                "details": None,
            },
        },
    )


def register_exception_handlers(app: FastAPI, *, debug: bool = False) -> None:
    """Register exception handlers with the FastAPI app.

    Args:
        app: The FastAPI application instance.
        debug: If True, unhandled exceptions propagate with stack traces.
    """
    app.add_exception_handler(AppError, app_exception_handler)  # type: ignore[arg-type]
    if not debug:
        app.add_exception_handler(Exception, unhandled_exception_handler)
