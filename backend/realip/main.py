# This file bootstraps the FastAPI app, wires up the request context,
# logging and metrics middlewares, and includes the client IP router.

import os

from fastapi import APIRouter, FastAPI, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

import realip.models  # noqa: F401
from realip.api.client_ip import router as client_ip_router
from realip.context.middleware import RequestContextMiddleware
from realip.core.config import settings
from realip.core.db import Base, SessionLocal, engine
from realip.core.logging import APILoggingMiddleware
from realip.core.metrics import MetricsMiddleware
from realip.core.secrets import ensure_persistent_secrets
from realip.core.startup_checks import run_startup_checks
from realip.core.tracing import trace_span
from realip.core.versioning import API_V1_PREFIX

app = FastAPI(title="realip")


@app.on_event("startup")
def _run_startup() -> None:
    run_startup_checks()
    # Tables and secrets need a database; tests and tooling opt out.
    if os.getenv("SKIP_MIGRATIONS") == "1":
        return
    Base.metadata.create_all(bind=engine)
    if settings.BOOTSTRAP_SECRETS:
        with trace_span("secrets.bootstrap"):
            with SessionLocal() as db:
                app.state.secrets = ensure_persistent_secrets(db)


# Observability layers
app.add_middleware(APILoggingMiddleware)
app.add_middleware(MetricsMiddleware)

api_v1 = APIRouter(prefix=API_V1_PREFIX)
api_v1.include_router(client_ip_router)
app.include_router(api_v1)

# Attach request context (request_id, client_ip, request_meta) early.
app.add_middleware(RequestContextMiddleware)


# /metrics endpoint (Prometheus scraping)
@app.get("/metrics", include_in_schema=False)
def metrics() -> Response:
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


# /ping endpoint and versioned health
@app.get("/ping")
@app.get(f"{API_V1_PREFIX}/health")
def ping():
    return {"message": "pong"}
