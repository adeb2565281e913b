"""Rate limiting middleware for API protection"""
from slowapi import Limiter
from slowapi.util import get_remote_address

from roleboard.config import settings


# Login is the only unauthenticated write, so limits are keyed by client IP
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=settings.RATE_LIMIT_DEFAULT,
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
    strategy="fixed-window",
    enabled=settings.RATE_LIMIT_ENABLED,
)
