"""
Browser-facing middleware: response hardening headers and double-submit CSRF.

Cookie and header names, the content security policy and HSTS all come from
``Settings``.
"""

from __future__ import annotations

import secrets

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from app.core.auth import SESSION_COOKIE
from app.core.config import Settings, get_settings
from app.core.errors import CSRFRejected

log = structlog.get_logger()

SAFE_METHODS = frozenset({"GET", "HEAD", "OPTIONS"})


def security_headers(settings: Settings) -> dict[str, str]:
    headers = {
        "X-Content-Type-Options": "nosniff",
        "X-Frame-Options": "DENY",
        "Referrer-Policy": "no-referrer",
        "Content-Security-Policy": settings.content_security_policy,
        # Feed pages are per user
        "Cache-Control": "no-store",
    }
    if settings.hsts_max_age > 0:
        headers["Strict-Transport-Security"] = f"max-age={settings.hsts_max_age}; includeSubDomains"
    return headers


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add hardening headers to responses that do not already set them."""

    def __init__(self, app, settings: Settings | None = None):
        super().__init__(app)
        self.headers = security_headers(settings or get_settings())

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)
        for header, value in self.headers.items():
            response.headers.setdefault(header, value)
        return response


class CSRFMiddleware(BaseHTTPMiddleware):
    """
    Double-submit check for cookie-authenticated writes.

    Only unsafe requests that carry the session cookie and no Authorization
    header are checked. For those, the ``csrf_cookie_name`` cookie must equal
    the ``csrf_header_name`` header.
    """

    def __init__(self, app, settings: Settings | None = None):
        super().__init__(app)
        settings = settings or get_settings()
        self.cookie_name = settings.csrf_cookie_name
        self.header_name = settings.csrf_header_name

    def _needs_check(self, request: Request) -> bool:
        return (
            request.method not in SAFE_METHODS
            and not request.headers.get("Authorization")
            and SESSION_COOKIE in request.cookies
        )

    async def dispatch(self, request: Request, call_next) -> Response:
        if self._needs_check(request):
            cookie_token = request.cookies.get(self.cookie_name, "")
            header_token = request.headers.get(self.header_name, "")
            if not cookie_token or not secrets.compare_digest(
                cookie_token.encode(), header_token.encode()
            ):
                log.info("csrf.rejected", path=request.url.path, method=request.method)
                error = CSRFRejected()
                return JSONResponse(status_code=error.status_code, content=error.to_dict())

        return await call_next(request)
