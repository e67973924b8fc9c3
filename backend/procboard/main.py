from fastapi import FastAPI, Response, Request
from fastapi.middleware.cors import CORSMiddleware
from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
import logging
import os
import time
from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
import sentry_sdk
from sentry_sdk.integrations.fastapi import FastApiIntegration
from .database import Base, SessionLocal, engine, namespace_engine
from .routes import cards, charts, lists, processes
from .services.lifecycle import NamespaceLifecycleCoordinator
from .services.registry import MetadataRegistry


logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())

dsn = os.getenv("SENTRY_DSN")
if dsn:
    sentry_sdk.init(dsn=dsn, integrations=[FastApiIntegration()])

REQUEST_COUNT = Counter("request_count", "Total requests", ["method", "endpoint"])
REQUEST_LATENCY = Histogram(
    "request_latency_seconds", "Request latency", ["endpoint"]
)

app = FastAPI(title="Process Boards API")

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        origin.strip()
        for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").split(",")
        if origin.strip()
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

limiter = Limiter(key_func=get_remote_address)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, lambda r, e: Response("Too Many Requests", status_code=429))
if os.getenv("TESTING") != "1":
    app.add_middleware(SlowAPIMiddleware)

Base.metadata.create_all(bind=engine)
app.state.coordinator = NamespaceLifecycleCoordinator(MetadataRegistry(SessionLocal), namespace_engine)


@app.middleware("http")
async def record_metrics(request: Request, call_next):
    start = time.time()
    response = await call_next(request)
    # route templates keep per-process paths from exploding label cardinality
    route = request.scope.get("route")
    endpoint = getattr(route, "path", request.url.path)
    REQUEST_COUNT.labels(request.method, endpoint).inc()
    REQUEST_LATENCY.labels(endpoint).observe(time.time() - start)
    return response

@app.get("/metrics")
def metrics():
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)

app.include_router(processes.router)
app.include_router(lists.router)
app.include_router(cards.router)
app.include_router(charts.router)
