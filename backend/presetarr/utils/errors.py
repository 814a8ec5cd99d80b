"""
Error handling utilities and the preset domain exceptions.

Standard Error Response Format:
{
    "detail": {
        "code": "ERROR_CODE",
        "message": "Human readable message"
    }
}

Per-item conditions (not applicable, excluded, write failed, diverged) are
never raised; they are collected into apply/rollback reports. Only
operation-level failures are exceptions, all derived from PresetError.
"""
from enum import Enum
from typing import Optional, Dict, Any
from loguru import logger
from fastapi import HTTPException


class ErrorCode(str, Enum):
    """Standardized error codes for API responses."""

    # Not found errors (404)
    PRESET_NOT_FOUND = "PRESET_NOT_FOUND"
    APPLICATION_NOT_FOUND = "APPLICATION_NOT_FOUND"

    # Validation errors (400/422)
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INVALID_PRESET = "INVALID_PRESET"

    # Lock errors (409)
    LOCK_TIMEOUT = "LOCK_TIMEOUT"

    # Server errors (500)
    INTERNAL_ERROR = "INTERNAL_ERROR"


class PresetError(Exception):
    """Base class for operation-level preset failures."""

    code: ErrorCode = ErrorCode.INTERNAL_ERROR
    status_code: int = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details


class LockTimeoutError(PresetError):
    """The configuration lock could not be acquired; nothing was started."""

    code = ErrorCode.LOCK_TIMEOUT
    status_code = 409


class PresetNotFoundError(PresetError):
    code = ErrorCode.PRESET_NOT_FOUND
    status_code = 404


class ApplicationNotFoundError(PresetError):
    code = ErrorCode.APPLICATION_NOT_FOUND
    status_code = 404


class InvalidPresetError(PresetError):
    """Malformed import document, or an export that found no settings."""

    code = ErrorCode.INVALID_PRESET
    status_code = 400


def create_error_response(
    code: ErrorCode,
    message: str,
    status_code: int,
    details: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """
    Create a standardized error response dict.

    Args:
        code: Error code enum value
        message: Human-readable error message
        status_code: HTTP status code (for reference, not included in response)
        details: Optional additional details

    Returns:
        Error response dict suitable for HTTPException detail
    """
    response = {
        "code": code.value,
        "message": message
    }
    if details:
        response["details"] = details
    return response


def raise_error(
    code: ErrorCode,
    message: str,
    status_code: int = 500,
    details: Optional[Dict[str, Any]] = None,
    log: bool = True
) -> None:
    """
    Raise a standardized HTTP exception.

    Args:
        code: Error code enum value
        message: Human-readable error message
        status_code: HTTP status code
        details: Optional additional details
        log: Whether to log the error (default True)
    """
    if log:
        logger.error(f"API Error [{code.value}]: {message}")

    raise HTTPException(
        status_code=status_code,
        detail=create_error_response(code, message, status_code, details)
    )


def raise_preset_error(error: PresetError) -> None:
    """Translate a domain exception into the standardized HTTP error."""
    raise_error(
        error.code,
        error.message,
        status_code=error.status_code,
        details=error.details,
        log=error.status_code >= 500,
    )


def log_and_raise_500(error: Exception, context: str) -> None:
    """
    Log error and raise a generic 500 response.

    Args:
        error: The caught exception
        context: Context description for logging (e.g., "applying preset")
    """
    logger.error(f"Error {context}: {type(error).__name__}: {error}")
    raise HTTPException(
        status_code=500,
        detail=create_error_response(
            ErrorCode.INTERNAL_ERROR,
            f"Failed {context}. Please check logs for details.",
            500
        )
    )
