"""Health check and metrics endpoints (no auth required)."""

from __future__ import annotations

from fastapi import APIRouter, Request, Response
from fastapi.responses import JSONResponse

from menudigital.models import now_iso
from menudigital.observability import generate_metrics

router = APIRouter(tags=["health"])


@router.get("/health")
def health(request: Request):
    return {
        "status": "ok",
        "environment": request.app.state.settings.environment,
        "channels": len(request.app.state.hub),
        "timestamp": now_iso(),
    }


@router.get("/health/ready")
def health_ready(request: Request):
    """Readiness check: verifies the database is accessible."""
    try:
        request.app.state.store.ping()
        return {"status": "ok", "timestamp": now_iso()}
    except Exception as e:
        return JSONResponse(
            status_code=503,
            content={"status": "unavailable", "error": str(e), "timestamp": now_iso()},
        )


@router.get("/health/live")
def health_live():
    """Liveness check: process is alive."""
    return {"status": "ok"}


@router.get("/metrics")
def metrics(request: Request):
    """Prometheus-compatible metrics endpoint."""
    body = generate_metrics(request.app.state.hub.stats, request.app.state.origin_gate)
    return Response(content=body, media_type="text/plain; charset=utf-8")
