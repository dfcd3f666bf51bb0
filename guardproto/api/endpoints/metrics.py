"""Prometheus scrape endpoint plus the in-process named counters."""

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from guardproto.core.observability.metrics import snapshot_named

router = APIRouter()


@router.get("/metrics", include_in_schema=False)
def prometheus_metrics() -> Response:
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


@router.get("/metrics/snapshot")
def metrics_snapshot():
    return snapshot_named()
