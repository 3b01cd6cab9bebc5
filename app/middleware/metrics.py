# app/middleware/metrics.py
import time
from typing import Callable, Dict

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response


def new_metrics() -> Dict[str, float]:
    return {
        "requests": 0,
        "total_response_ms": 0.0,
        "client_errors": 0,
        "server_errors": 0,
        "promotions_created": 0,
        "promotions_rejected": 0,
    }


def increment(request: Request, key: str, amount: int = 1) -> None:
    """Bump a counter from route code; no-op before the first request initialised metrics."""
    metrics = getattr(request.app.state, "metrics", None)
    if metrics is not None:
        metrics[key] = metrics.get(key, 0) + amount


class MetricsMiddleware(BaseHTTPMiddleware):
    """
    Collects in-process metrics on app.state.metrics:
      - total requests and response time (ms)
      - 4xx / 5xx response counts
      - promotion counters incremented by the promotion routes
    NOTE: do NOT touch app.state in __init__; it may not exist while the middleware stack builds.
    """

    def __init__(self, app, dispatch: Callable = None):
        super().__init__(app, dispatch=dispatch)

    async def dispatch(self, request: Request, call_next):
        metrics = getattr(request.app.state, "metrics", None)
        if metrics is None:
            metrics = request.app.state.metrics = new_metrics()

        start = time.perf_counter()
        response: Response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000.0

        metrics["requests"] = metrics.get("requests", 0) + 1
        metrics["total_response_ms"] = metrics.get("total_response_ms", 0.0) + elapsed_ms
        if 400 <= response.status_code < 500:
            metrics["client_errors"] = metrics.get("client_errors", 0) + 1
        elif response.status_code >= 500:
            metrics["server_errors"] = metrics.get("server_errors", 0) + 1

        return response
