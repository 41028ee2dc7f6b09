"""Security Headers Middleware

Adds security headers to HTTP responses of the shop API.

The storefront frontend is served separately; these headers protect the
JSON API from being framed or sniffed when it is opened in a browser.
"""

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
import config


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Middleware that adds security headers to all HTTP responses."""

    async def dispatch(self, request: Request, call_next) -> Response:
        """Process request and add security headers to response.

        Args:
            request: Incoming HTTP request
            call_next: Next middleware/handler in chain

        Returns:
            Response with security headers added
        """
        response = await call_next(request)

        if not config.SECURITY_HEADERS_ENABLED:
            return response

        # Prevent MIME type sniffing
        response.headers["X-Content-Type-Options"] = "nosniff"

        # API responses are never meant to be framed
        response.headers["X-Frame-Options"] = "DENY"

        # Only add if serving over HTTPS
        if config.HSTS_ENABLED:
            # max-age: 31536000 seconds = 1 year
            response.headers["Strict-Transport-Security"] = (
                "max-age=31536000; includeSubDomains"
            )

        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        # Checkout responses must never be cached by proxies
        if request.url.path.startswith("/api/checkout"):
            response.headers["Cache-Control"] = "no-store"

        return response
