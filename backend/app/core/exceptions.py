"""
Custom exceptions and error handlers for consistent error responses.

Provides standardized error codes and global exception handlers.
"""

import logging
from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import SQLAlchemyError
from typing import Any, Dict, List

logger = logging.getLogger("fleet_telemetry.errors")


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, error_code: str, status_code: int = 500, details: Dict[str, Any] = None):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class TelemetryValidationError(AppException):
    """Raised when an ingestion payload is missing or has invalid fields."""

    def __init__(self, message: str, fields: List[str] = None):
        self.fields = fields or []
        super().__init__(
            message=message,
            error_code="ERR_VALIDATION_002",
            status_code=status.HTTP_400_BAD_REQUEST,
            details={"fields": self.fields}
        )


class MissingFieldError(TelemetryValidationError):
    """Raised when required ingestion fields are absent."""

    def __init__(self, fields: List[str]):
        super().__init__(
            message=f"Missing required fields: {', '.join(fields)}",
            fields=fields
        )


class ResourceNotFoundError(AppException):
    """Raised when requested resource is not found."""

    def __init__(self, resource: str, resource_id: Any = None, message: str = None):
        if message is None:
            message = f"{resource} not found"
            if resource_id:
                message = f"{resource} with ID {resource_id} not found"
        super().__init__(
            message=message,
            error_code="ERR_NOT_FOUND_001",
            status_code=status.HTTP_404_NOT_FOUND,
            details={"resource": resource, "id": resource_id}
        )


class VehicleNotFoundError(ResourceNotFoundError):
    """Raised when no vehicle is registered for a device IMEI."""

    def __init__(self, device_imei: str):
        super().__init__(
            resource="Vehicle",
            resource_id=device_imei,
            message=f"Vehicle not found with IMEI: {device_imei}"
        )


class ReportUnavailableError(AppException):
    """Raised when a daily report could not be produced."""

    def __init__(self, vehicle_id: int, day: Any):
        super().__init__(
            message="Report unavailable for this day",
            error_code="ERR_REPORT_001",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            details={"vehicle_id": vehicle_id, "date": str(day)}
        )


class ArrivalRegressionError(AppException):
    """Raised when an update would move an ARRIVED trip back to another arrival status."""

    def __init__(self, trip_id: int, requested: Any):
        super().__init__(
            message=f"Trip {trip_id} has already arrived; arrival status cannot change to {requested}",
            error_code="ERR_TRIP_001",
            status_code=status.HTTP_409_CONFLICT,
            details={"trip_id": trip_id, "requested": str(requested)}
        )


class VehicleBusyError(AppException):
    """Raised when the per-vehicle state lock cannot be acquired in time."""

    def __init__(self, vehicle_id: int):
        super().__init__(
            message="Vehicle state is locked by another update, retry later",
            error_code="ERR_LOCK_001",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            details={"vehicle_id": vehicle_id}
        )


# Global Exception Handlers

async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handler for custom application exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": exc.error_code,
            "message": exc.message,
            "details": exc.details
        }
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handler for FastAPI HTTPException with standardized format."""
    # Map status code to error code
    error_code_map = {
        400: "ERR_BAD_REQUEST",
        404: "ERR_NOT_FOUND",
        409: "ERR_CONFLICT",
        500: "ERR_INTERNAL_SERVER"
    }

    error_code = error_code_map.get(exc.status_code, "ERR_UNKNOWN")

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": error_code,
            "message": exc.detail,
            "details": {}
        }
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handler for Pydantic validation errors."""
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error_code": "ERR_VALIDATION",
            "message": "Validation error",
            "details": {
                "errors": exc.errors()
            }
        }
    )


async def storage_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    """Handler for storage failures surfacing from the database layer."""
    logger.error("Storage failure on %s %s: %s", request.method, request.url.path, exc)

    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "error_code": "ERR_STORAGE_001",
            "message": "Storage unavailable",
            "details": {}
        }
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handler for unhandled exceptions."""
    logger.exception("Unhandled exception: %s: %s", type(exc).__name__, exc)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error_code": "ERR_INTERNAL_SERVER",
            "message": "An internal server error occurred",
            "details": {}
        }
    )
