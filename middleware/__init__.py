"""
Gloo Middleware
Custom middleware for security headers and request logging
"""

from .security import SecurityMiddleware
from .logging import LoggingMiddleware, log_business_event

__all__ = [
    "SecurityMiddleware",
    "LoggingMiddleware",
    "log_business_event"
]
