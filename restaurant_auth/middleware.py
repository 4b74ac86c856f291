import time
import logging
from typing import Dict, List, Optional

from fastapi import Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from .core.config import settings
from .exceptions import create_error_response

logger = logging.getLogger(__name__)

class RateLimitMiddleware(BaseHTTPMiddleware):
    """Coarse per-IP request throttle, independent of the per-phone OTP limit"""

    def __init__(self, app: ASGIApp, rate_limit: Optional[int] = None, window_seconds: int = 60):
        super().__init__(app)
        self.requests: Dict[str, List[float]] = {}
        self.rate_limit = rate_limit if rate_limit is not None else settings.RATE_LIMIT_PER_MINUTE
        self.window_seconds = window_seconds
        self._last_prune = time.time()

    def _prune(self, current_time: float) -> None:
        # drop clients whose whole window has aged out
        stale = [ip for ip, times in self.requests.items() if not times or current_time - times[-1] >= self.window_seconds]
        for ip in stale:
            del self.requests[ip]
        self._last_prune = current_time

    async def dispatch(self, request: Request, call_next):
        client_ip = request.client.host if request.client else "unknown"

        current_time = time.time()
        if current_time - self._last_prune >= self.window_seconds:
            self._prune(current_time)
        recent = [
            req_time for req_time in self.requests.get(client_ip, [])
            if current_time - req_time < self.window_seconds
        ]
        if recent:
            self.requests[client_ip] = recent
        else:
            self.requests.pop(client_ip, None)

        if len(recent) >= self.rate_limit:
            logger.warning(f"Rate limit exceeded for IP: {client_ip}")
            return JSONResponse(
                status_code=429,
                content=create_error_response("TOO_MANY_REQUESTS", "Rate limit exceeded. Please try again later."),
            )

        self.requests.setdefault(client_ip, []).append(current_time)
        return await call_next(request)

class SecurityMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        response.headers["Cache-Control"] = "no-store"
        if settings.is_production:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        return response

class LoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        client_host = request.client.host if request.client else "unknown"
        logger.info(f"Request: {request.method} {request.url.path} from {client_host}")

        response = await call_next(request)

        duration = time.time() - start_time
        logger.info(f"Response: {response.status_code} {request.url.path} in {duration:.3f}s")
        return response

class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)
        except Exception as e:
            logger.error(f"Unhandled error on {request.url.path}: {str(e)}", exc_info=True)
            message = f"Internal server error: {str(e)}" if settings.DEBUG else "Internal server error"
            return JSONResponse(status_code=500, content=create_error_response("INTERNAL_ERROR", message))
