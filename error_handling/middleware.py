"""
Error handling middleware for the FastAPI part of the server.

This module provides middleware to catch and process exceptions in a consistent way.
"""
import logging
import uuid
from typing import Callable
from fastapi import Request, status
from fastapi.exception_handlers import http_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request as StarletteRequest

logger = logging.getLogger("courtsapp_mcp.error_handling")


def _error_headers(request_id: str) -> dict:
    return {
        "X-Request-ID": request_id,
        "Cache-Control": "no-store",
    }


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Middleware for tagging requests and formatting unhandled errors."""

    def __init__(self, app, service_name: str = "courtsapp-mcp-server"):
        super().__init__(app)
        self.service_name = service_name

    async def dispatch(self, request: StarletteRequest, call_next: Callable):
        """Process the request and handle any exceptions."""
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        request.state.request_id = request_id

        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id
            return response
        except Exception as exc:
            return self._handle_exception(exc, request_id, request)

    def _handle_exception(
        self,
        exc: Exception,
        request_id: str,
        request: StarletteRequest
    ) -> JSONResponse:
        """Handle an exception and return an appropriate response."""
        # Import here to avoid circular dependency
        from error_handling import ToolError, ErrorCode, ErrorResponse, log_error

        error = ToolError.from_exception(exc)
        if error.code == ErrorCode.UNEXPECTED_FAILURE:
            error = ToolError(
                code=ErrorCode.INTERNAL_ERROR,
                message="An unexpected error occurred",
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                details=error.details,
                cause=exc,
            )

        log_error(
            error,
            logger,
            request_id=request_id,
            level=logging.ERROR if error.status_code >= 500 else logging.WARNING,
            extra={
                "path": request.url.path,
                "method": request.method,
                "service": self.service_name,
            }
        )

        return JSONResponse(
            content=ErrorResponse(error=error.to_dict(request_id=request_id)).model_dump(),
            status_code=error.status_code,
            headers=_error_headers(request_id),
        )


def setup_error_handling(app, service_name: str = "courtsapp-mcp-server") -> None:
    """Set up error handling middleware for a FastAPI application."""
    from error_handling import ToolError, ErrorCode, ErrorResponse, log_error

    app.add_middleware(ErrorHandlingMiddleware, service_name=service_name)

    @app.exception_handler(ToolError)
    async def tool_error_handler(request: Request, exc: ToolError) -> JSONResponse:
        """Handle ToolError exceptions raised by route handlers."""
        request_id = getattr(request.state, "request_id", "")
        log_error(
            exc,
            logger,
            request_id=request_id,
            level=logging.WARNING if exc.status_code < 500 else logging.ERROR,
            extra={"path": request.url.path, "method": request.method},
        )
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(error=exc.to_dict(request_id=request_id)).model_dump(),
            headers=_error_headers(request_id),
        )

    @app.exception_handler(StarletteHTTPException)
    async def not_found_handler(request: Request, exc: StarletteHTTPException):
        """Report unknown routes in the standard error format."""
        if exc.status_code != status.HTTP_404_NOT_FOUND:
            return await http_exception_handler(request, exc)
        request_id = getattr(request.state, "request_id", "")
        error = ToolError(
            code=ErrorCode.NOT_FOUND,
            message=f"No route for {request.url.path}",
            status_code=status.HTTP_404_NOT_FOUND,
        )
        return JSONResponse(
            status_code=error.status_code,
            content=ErrorResponse(error=error.to_dict(request_id=request_id)).model_dump(),
            headers=_error_headers(request_id),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """Report malformed request bodies in the standard error format."""
        request_id = getattr(request.state, "request_id", "")
        error = ToolError(
            code=ErrorCode.VALIDATION_ERROR,
            message="Invalid request body",
            status_code=422,
            details={"errors": [
                {"loc": list(e.get("loc", ())), "msg": e.get("msg", "")}
                for e in exc.errors()
            ]},
        )
        logger.warning(
            f"Rejected request to {request.url.path}: {error.message}",
            extra={"request_id": request_id},
        )
        return JSONResponse(
            status_code=error.status_code,
            content=ErrorResponse(error=error.to_dict(request_id=request_id)).model_dump(),
            headers=_error_headers(request_id),
        )


__all__ = [
    'ErrorHandlingMiddleware',
    'setup_error_handling',
]
