from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from fastapi import APIRouter, Request, Response
import time

router = APIRouter()

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP Requests",
    ["method", "route", "http_status"]
)

REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["route"]
)

EXCEPTION_COUNT = Counter(
    "http_exceptions_total",
    "Total exceptions",
    ["route"]
)

def _route_label(request: Request) -> str:
    # Template path keeps /preferences/{category} as one series
    route = request.scope.get("route")
    return getattr(route, "path", request.url.path)

@router.get("/")
def metrics():
    data = generate_latest()
    return Response(data, media_type=CONTENT_TYPE_LATEST)

async def metrics_middleware(request: Request, call_next):
    start_time = time.time()

    try:
        response = await call_next(request)
    except Exception:
        EXCEPTION_COUNT.labels(route=_route_label(request)).inc()
        raise

    route = _route_label(request)
    REQUEST_LATENCY.labels(route=route).observe(time.time() - start_time)
    REQUEST_COUNT.labels(
        method=request.method,
        route=route,
        http_status=response.status_code
    ).inc()

    return response
