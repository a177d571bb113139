"""
Security Middleware for Hackathon Registration.

Implements rate limiting and security headers.
"""

from collections.abc import Callable

from fastapi import FastAPI, Request, Response, status
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address
from starlette.middleware.base import BaseHTTPMiddleware

from hackreg.core.config import get_settings

# ============== Rate Limiting ==============

_settings = get_settings()

# Default limit applies to every route through SlowAPIMiddleware
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[_settings.rate_limit],
    enabled=_settings.rate_limit_enabled,
)


# ============== Security Headers ==============

class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Security Headers Middleware.

    Adds security headers to all responses:
    - HSTS (HTTP Strict Transport Security)
    - CSP (Content Security Policy)
    - X-Frame-Options
    - X-Content-Type-Options
    - Referrer-Policy
    """

    def __init__(
        self,
        app: FastAPI,
        hsts_max_age: int = 15552000,  # 180 days
        hsts_include_subdomains: bool = True,
    ):
        super().__init__(app)
        self.hsts_max_age = hsts_max_age
        self.hsts_include_subdomains = hsts_include_subdomains

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Add security headers to response."""
        response = await call_next(request)

        hsts_value = f"max-age={self.hsts_max_age}"
        if self.hsts_include_subdomains:
            hsts_value += "; includeSubDomains"
        response.headers["Strict-Transport-Security"] = hsts_value

        # JSON/CSV API: nothing should be framed or executed
        response.headers["Content-Security-Policy"] = (
            "default-src 'none'; frame-ancestors 'none'; base-uri 'none'"
        )
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["Referrer-Policy"] = "no-referrer"
        response.headers["Cross-Origin-Resource-Policy"] = "same-site"

        return response


# ============== Rate Limit Exception Handler ==============

def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Report rate limiting in the standard error envelope."""
    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content={
            "status": "fail",
            "message": "Too many requests from this IP, please try again later.",
        },
        headers={"Retry-After": "60"},
    )


# ============== Setup Function ==============

def setup_security_middleware(app: FastAPI) -> None:
    """
    Setup all security middleware for the FastAPI application.

    Call after creating the app; middleware added later wraps earlier ones.
    """
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

    app.add_middleware(SlowAPIMiddleware)

    # Security headers last so rate-limited responses get headers too
    app.add_middleware(SecurityHeadersMiddleware)


# ============== Decorators for Rate Limiting ==============

def rate_limit_auth() -> Callable:
    """Stricter per-IP limit for login and signup endpoints."""
    return limiter.limit(_settings.auth_rate_limit)
