"""Monitoring and observability middleware"""
import time
from typing import Callable

from fastapi import Request, Response
from prometheus_client import Counter, Histogram
from starlette.middleware.base import BaseHTTPMiddleware

from roleboard.utils.logger import logger


# ===== Prometheus Metrics =====

# Request metrics
http_requests_total = Counter(
    "roleboard_http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"]
)

http_request_duration_seconds = Histogram(
    "roleboard_http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["method", "endpoint"]
)

http_errors_total = Counter(
    "roleboard_http_errors_total",
    "Total HTTP errors",
    ["method", "endpoint", "status"]
)

# Domain metrics
authentication_failures_total = Counter(
    "roleboard_authentication_failures_total",
    "Total authentication failures",
    ["reason"]  # token_missing, token_expired, invalid_credentials, ...
)

authorization_denials_total = Counter(
    "roleboard_authorization_denials_total",
    "Requests rejected by a role or permission gate",
    ["gate"]
)

storage_fallbacks_total = Counter(
    "roleboard_storage_fallbacks_total",
    "Persistent storage operations that fell back to memory",
    ["operation"]
)

notifications_created_total = Counter(
    "roleboard_notifications_created_total",
    "Notifications written",
    ["action", "target_role"]
)


class MonitoringMiddleware(BaseHTTPMiddleware):
    """Middleware for monitoring and metrics collection"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Process request and collect metrics"""
        start_time = time.time()

        method = request.method
        endpoint = request.url.path

        # Add request ID for tracing
        request_id = request.headers.get("x-request-id", f"req_{int(time.time() * 1000)}")
        request.state.request_id = request_id

        try:
            response = await call_next(request)
            status = response.status_code

            duration = time.time() - start_time
            http_requests_total.labels(
                method=method,
                endpoint=endpoint,
                status=status
            ).inc()

            http_request_duration_seconds.labels(
                method=method,
                endpoint=endpoint
            ).observe(duration)

            if duration > 1.0:
                logger.warning(
                    f"Slow request detected: {method} {endpoint}",
                    extra={
                        "request_id": request_id,
                        "method": method,
                        "path": endpoint,
                        "duration": duration,
                        "status": status
                    }
                )

            if status >= 400:
                http_errors_total.labels(
                    method=method,
                    endpoint=endpoint,
                    status=status
                ).inc()

            response.headers["X-Request-ID"] = request_id
            response.headers["X-Response-Time"] = f"{duration:.3f}s"

            return response

        except Exception as e:
            duration = time.time() - start_time
            http_errors_total.labels(
                method=method,
                endpoint=endpoint,
                status=500
            ).inc()

            logger.error(
                f"Request failed: {method} {endpoint}",
                extra={
                    "request_id": request_id,
                    "method": method,
                    "path": endpoint,
                    "duration": duration,
                    "error": str(e)
                },
                exc_info=True
            )
            raise


def record_auth_failure(reason: str):
    """Record authentication failure"""
    authentication_failures_total.labels(reason=reason).inc()


def record_authorization_denial(gate: str):
    """Record a role/permission gate rejection"""
    authorization_denials_total.labels(gate=gate).inc()


def record_storage_fallback(operation: str):
    """Record a persistent → memory fallback"""
    storage_fallbacks_total.labels(operation=operation).inc()


def record_notification_created(action: str, target_role: str):
    """Record a stored notification"""
    notifications_created_total.labels(action=action, target_role=target_role).inc()
