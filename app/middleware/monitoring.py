# app/middleware/monitoring.py
import time
from typing import Callable

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.routing import Match
from prometheus_client import Counter, Histogram, Gauge

TASK_REQUEST_COUNT = Counter(
    'tasknest_task_requests_total',
    'Requests served by the task endpoints',
    ['method', 'route', 'status']
)

TASK_REQUEST_DURATION = Histogram(
    'tasknest_task_request_duration_seconds',
    'Task endpoint latency',
    ['method', 'route']
)

ACTIVE_REQUESTS = Gauge(
    'tasknest_requests_active',
    'Requests currently being processed'
)


def _route_template(request: Request) -> str:
    """Route path template (/api/v1/tasks/{task_id}) so ids don't explode label cardinality"""
    for route in request.app.routes:
        match, _ = route.matches(request.scope)
        if match == Match.FULL:
            return getattr(route, "path", request.url.path)
    return "unmatched"


class MonitoringMiddleware(BaseHTTPMiddleware):
    """
    Prometheus metrics for the task API. Generic per-handler HTTP metrics come from
    prometheus-fastapi-instrumentator; this adds an in-flight gauge and task-route counters.
    """

    def __init__(self, app, path_prefix: str = "/api/v1/tasks"):
        super().__init__(app)
        self.path_prefix = path_prefix

    async def dispatch(self, request: Request, call_next: Callable):
        ACTIVE_REQUESTS.inc()
        start_time = time.time()
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            ACTIVE_REQUESTS.dec()
            if request.url.path.startswith(self.path_prefix):
                route = _route_template(request)
                TASK_REQUEST_COUNT.labels(method=request.method, route=route, status=status_code).inc()
                TASK_REQUEST_DURATION.labels(method=request.method, route=route).observe(time.time() - start_time)
