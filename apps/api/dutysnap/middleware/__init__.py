"""
HTTP middleware: security headers and rate limiting
"""
from .rate_limit import limiter, setup_rate_limiting
from .security_headers import SecurityHeadersMiddleware

__all__ = [
    "limiter",
    "setup_rate_limiting",
    "SecurityHeadersMiddleware",
]
