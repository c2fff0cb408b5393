"""
Request middleware: request ids, body size limits and access logging.
"""

from typing import Callable
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp
import logging
import time
import uuid

from credora.config import settings
from credora.services.error_handler import ErrorHandlerService
from credora.utils.exceptions import BadRequestError

logger = logging.getLogger(__name__)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Stamps every request with an ``X-Request-ID``, rejects oversized bodies
    and logs method, path, status and timing.
    """

    def __init__(
        self,
        app: ASGIApp,
        max_request_size: int = None,
        slow_request_threshold: float = None
    ):
        super().__init__(app)
        self.max_request_size = max_request_size or settings.max_request_size
        self.slow_request_threshold = slow_request_threshold or settings.slow_request_seconds

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())[:8]
        request.state.request_id = request_id

        start_time = time.time()

        try:
            self._validate_request_size(request)
        except BadRequestError as exc:
            logger.warning(f"Rejected request [{request_id}] {request.method} {request.url.path}: {exc.detail}")
            response = ErrorHandlerService.handle_api_exception(exc, request)
            response.headers["X-Request-ID"] = request_id
            return response

        response = await call_next(request)

        processing_time = time.time() - start_time
        self._log_response(request, response, request_id, processing_time)

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Processing-Time"] = f"{processing_time:.3f}"
        return response

    def _validate_request_size(self, request: Request) -> None:
        """
        Raises:
            BadRequestError: If the declared body size exceeds the limit
        """
        content_length = request.headers.get("content-length")
        if content_length:
            try:
                size = int(content_length)
            except ValueError:
                raise BadRequestError("Invalid content-length header")
            if size > self.max_request_size:
                raise BadRequestError(
                    f"Request size {size} bytes exceeds maximum allowed size {self.max_request_size} bytes"
                )

    def _log_response(self, request: Request, response: Response, request_id: str, processing_time: float) -> None:
        message = (
            f"[{request_id}] {request.method} {request.url.path} -> "
            f"{response.status_code} ({processing_time:.3f}s)"
        )
        if response.status_code >= 500:
            logger.error(message)
        elif processing_time > self.slow_request_threshold:
            logger.warning(f"Slow request {message}")
        else:
            logger.info(message)
