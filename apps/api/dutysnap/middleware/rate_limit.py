"""
Rate limiting for comparison and duty endpoints
"""
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from starlette.requests import Request
import logging

from ..core.config import settings

logger = logging.getLogger(__name__)


def get_client_key(request: Request) -> str:
    """
    Rate limit key for a request
    Uses the first X-Forwarded-For hop when present, else the remote address
    """
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return f"ip:{forwarded_for.split(',')[0].strip()}"
    return f"ip:{get_remote_address(request)}"


# Create limiter instance
limiter = Limiter(
    key_func=get_client_key,
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
    enabled=settings.RATE_LIMIT_ENABLED
)


# Limits are read from settings when each request is checked
def compare_rate_limit() -> str:
    return settings.COMPARE_RATE_LIMIT


def duty_rate_limit() -> str:
    return settings.DUTY_RATE_LIMIT


def setup_rate_limiting(app):
    """Setup rate limiting for the FastAPI application"""
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    if limiter.enabled:
        logger.info(f"Rate limiting configured (storage: {settings.RATE_LIMIT_STORAGE_URI})")
    else:
        logger.info("Rate limiting disabled")
