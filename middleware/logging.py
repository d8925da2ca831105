"""
Gloo Logging Middleware
Structured request logging with request ids and latency tracking
"""

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
import structlog
import time
import uuid
from typing import Dict, Any, Optional
from contextvars import ContextVar

from utils.request_utils import get_client_ip

logger = structlog.get_logger()

# Context variables for request tracking
request_id_var: ContextVar[str] = ContextVar('request_id', default='')
user_id_var: ContextVar[str] = ContextVar('user_id', default='')

SLOW_REQUEST_SECONDS = 2.0


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs each request start and completion with a unique request id,
    which is bound into structlog's context and echoed as X-Request-ID.
    """

    def __init__(self, app):
        super().__init__(app)

        # Paths to exclude from detailed logging
        self.exclude_paths = {
            "/health", "/api/v1/health", "/favicon.ico"
        }

    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())

        request_id_var.set(request_id)
        user_id_var.set('')
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        if any(request.url.path.startswith(path) for path in self.exclude_paths):
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id
            return response

        request_info = {
            "method": request.method,
            "path": request.url.path,
            "query_params": dict(request.query_params),
            "client_ip": get_client_ip(request),
            "user_agent": request.headers.get("user-agent", ""),
        }
        logger.info("Request started", **request_info, event_type="request_start")

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "Request failed",
                **request_info,
                process_time=round(time.time() - start_time, 4),
                error=str(e),
                error_type=type(e).__name__,
                event_type="request_error"
            )
            raise

        process_time = time.time() - start_time
        logger.log(
            self._determine_log_level(response.status_code),
            "Request completed",
            **request_info,
            status_code=response.status_code,
            process_time=round(process_time, 4),
            user_id=user_id_var.get() or None,
            event_type="request_complete"
        )
        if process_time > SLOW_REQUEST_SECONDS:
            logger.warning(
                "Slow request detected",
                endpoint=f"{request.method} {request.url.path}",
                response_time=process_time,
                event_type="slow_request"
            )

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Process-Time"] = str(round(process_time, 4))
        return response

    def _determine_log_level(self, status_code: int) -> int:
        """Determine appropriate log level based on status code"""
        if status_code >= 500:
            return 40  # ERROR
        elif status_code >= 400:
            return 30  # WARNING
        return 20  # INFO


# Utility functions for structured logging
def get_request_id() -> str:
    """Get current request ID from context"""
    return request_id_var.get()


def set_user_id(user_id: str) -> None:
    """Record the authenticated user for the current request"""
    user_id_var.set(user_id)
    structlog.contextvars.bind_contextvars(user_id=user_id)


def get_user_id() -> str:
    """Get current user ID from context"""
    return user_id_var.get()


def log_business_event(event: str, data: Optional[Dict[str, Any]] = None):
    """Log a domain event such as a moderation transition"""
    logger.info(
        "Business event",
        request_id=get_request_id(),
        user_id=get_user_id(),
        business_event=event,
        data=data or {},
        event_type="business_event"
    )
