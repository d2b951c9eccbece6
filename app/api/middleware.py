"""
API middleware for HealthSpeak API.

Provides:
- Rate limiting
- Request logging with a per-request id
- Mapping of unhandled errors to safe JSON responses
"""

import time
from typing import Callable
from uuid import uuid4

from fastapi import Request, Response, HTTPException
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.middleware.base import BaseHTTPMiddleware

from app.utils.logger import bind_request_context, clear_request_context, get_logger

logger = get_logger("middleware")


# Rate limiter using client IP
limiter = Limiter(key_func=get_remote_address)


def error_body(error: str, message: str, error_code: str) -> dict:
    return {"error": error, "message": message, "error_code": error_code}


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware for request/response logging.

    Logs:
    - Request method, path, client address
    - Response status code
    - Processing time
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable
    ) -> Response:
        start_time = time.time()
        request_id = request.headers.get("X-Request-ID") or uuid4().hex

        bind_request_context(request_id=request_id, path=request.url.path)
        logger.info(
            "Request received",
            method=request.method,
            client_ip=get_remote_address(request)
        )

        try:
            response = await call_next(request)
            process_time = time.time() - start_time
            logger.info(
                "Request completed",
                method=request.method,
                status_code=response.status_code,
                process_time_ms=int(process_time * 1000)
            )
        except Exception as e:
            logger.error(
                "Request failed",
                method=request.method,
                error=str(e),
                process_time_ms=int((time.time() - start_time) * 1000)
            )
            raise
        finally:
            clear_request_context()

        response.headers["X-Process-Time"] = f"{process_time:.4f}"
        response.headers["X-Request-ID"] = request_id
        return response


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """
    Global error handling middleware.

    Catches unhandled exceptions and returns safe error responses.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable
    ) -> Response:
        try:
            return await call_next(request)

        except HTTPException:
            raise

        except ValueError as e:
            logger.warning("Validation error", error=str(e))
            return JSONResponse(
                status_code=400,
                content=error_body("Validation Error", str(e), "VALIDATION_ERROR")
            )

        except Exception as e:
            logger.error("Unhandled exception", error=str(e), exc_info=True)
            return JSONResponse(
                status_code=500,
                content=error_body(
                    "Internal Server Error",
                    "An unexpected error occurred. Please try again.",
                    "INTERNAL_ERROR"
                )
            )


async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    logger.warning("Rate limit exceeded", client_ip=get_remote_address(request))
    return JSONResponse(
        status_code=429,
        content=error_body(
            "Rate Limit Exceeded",
            "Too many requests. Please wait before trying again.",
            "RATE_LIMIT_EXCEEDED"
        )
    )


def setup_rate_limiting(app) -> None:
    """Setup rate limiting on the application."""
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_handler)
