"""
Middleware package for the Credora API.
"""

from .request_logging import RequestLoggingMiddleware

__all__ = [
    "RequestLoggingMiddleware",
]
