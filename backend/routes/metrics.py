"""Prometheus scrape endpoint."""

from fastapi import APIRouter, Depends, Response

from dependencies import get_metrics
from services.metrics import Metrics

router = APIRouter()


@router.get("/metrics")
async def metrics_endpoint(metrics: Metrics = Depends(get_metrics)) -> Response:
    body, content_type = metrics.render()
    return Response(content=body, media_type=content_type)
