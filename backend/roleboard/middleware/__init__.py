"""Middleware modules for production-ready features"""
from roleboard.middleware.monitoring import (
    MonitoringMiddleware,
    record_auth_failure,
    record_authorization_denial,
    record_notification_created,
    record_storage_fallback,
)
from roleboard.middleware.rate_limit import limiter

__all__ = [
    "MonitoringMiddleware",
    "record_auth_failure",
    "record_authorization_denial",
    "record_notification_created",
    "record_storage_fallback",
    "limiter",
]
