"""
Error handling module for the CourtsApp MCP server.

This module provides a structured way to classify, log and report errors,
both for tool invocations (converted into error envelopes) and for the
HTTP surface (converted into JSON error responses).
"""
from enum import Enum
from typing import Optional, Dict, Any, Union
import logging
from fastapi import status
from pydantic import BaseModel

# Import all from submodules to make them available at the package level
from .tracing import *
from .middleware import *
from .utils import *

# Re-export all error-related classes and functions
__all__ = [
    # Error codes and base classes
    'ErrorCode',
    'ErrorResponse',
    'ToolError',

    # Utility functions
    'log_error',
    'setup_error_handling',
    'ErrorHandlingMiddleware',

    # Tracing
    'setup_tracing',
    'get_tracer',
    'instrument_fastapi',

    # Utils
    'configure_logging',
    'setup_app',
]


class ErrorCode(str, Enum):
    """Standard error codes for the application."""
    # Tool invocation errors
    UNKNOWN_TOOL = "unknown_tool"
    INVALID_ARGUMENTS = "invalid_arguments"
    DOMAIN_PRECONDITION = "domain_precondition"
    UNEXPECTED_FAILURE = "unexpected_failure"

    # Transport errors
    NOT_FOUND = "not_found"
    VALIDATION_ERROR = "validation_error"
    INTERNAL_ERROR = "internal_error"


class ErrorResponse(BaseModel):
    """Standard error response format for the JSON endpoints."""
    error: Dict[str, Any]

    class Config:
        json_schema_extra = {
            "example": {
                "error": {
                    "code": "validation_error",
                    "message": "Invalid request body",
                    "details": {"errors": []},
                    "request_id": "req_12345",
                }
            }
        }


class ToolError(Exception):
    """Base exception class for all application errors."""

    def __init__(
        self,
        code: Union[ErrorCode, str],
        message: str,
        status_code: int = status.HTTP_400_BAD_REQUEST,
        details: Optional[Dict[str, Any]] = None,
        cause: Optional[BaseException] = None,
    ):
        self.code = ErrorCode(code) if isinstance(code, str) else code
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        self.cause = cause
        super().__init__(message)

    def to_dict(self, request_id: str = "") -> Dict[str, Any]:
        """Convert the error to a dictionary for JSON serialization."""
        return {
            "code": self.code.value,
            "message": self.message,
            "details": self.details,
            "request_id": request_id,
        }

    @classmethod
    def from_exception(cls, exc: BaseException) -> 'ToolError':
        """
        Create a ToolError from a generic exception.

        The message is the exception's own text; exceptions raised without
        one fall back to their repr so the caller always gets something
        readable.
        """
        if isinstance(exc, ToolError):
            return exc
        return cls(
            code=ErrorCode.UNEXPECTED_FAILURE,
            message=str(exc) or repr(exc),
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            details={"exception_type": exc.__class__.__name__},
            cause=exc,
        )


def log_error(
    error: Exception,
    logger: logging.Logger,
    request_id: str = "",
    level: int = logging.ERROR,
    extra: Optional[Dict[str, Any]] = None
) -> None:
    """
    Helper function to log errors with structured context.

    Args:
        error: The exception to log
        logger: Logger instance to use
        request_id: Optional request ID for correlation
        level: Log level (default: ERROR)
        extra: Additional context to include in the log
    """
    extra = dict(extra or {})
    if request_id:
        extra["request_id"] = request_id

    if isinstance(error, ToolError):
        extra.update({
            "error_code": error.code.value,
            "status_code": error.status_code,
        })
        if error.cause:
            extra["cause"] = str(error.cause)
    else:
        extra.update({
            "error_type": error.__class__.__name__,
            "error_message": str(error)
        })

    logger.log(level, str(error), extra=extra, exc_info=level >= logging.ERROR)
