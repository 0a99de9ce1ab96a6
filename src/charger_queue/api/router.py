"""FastAPI route definitions."""

import json
import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Header, Request, Response
from fastapi.responses import JSONResponse

from ..exceptions import InvalidInput
from ..metrics import get_metrics
from ..service import StateService
from ..state.actions import parse_action
from .schemas import HealthResponse, OkResponse

logger = logging.getLogger(__name__)

router = APIRouter()


def get_service(request: Request) -> StateService:
    """Service built at startup and attached to the app."""
    return request.app.state.service


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    """
    Health check endpoint.

    Does not touch the store.
    """
    service = get_service(request)
    uptime = (datetime.now() - request.app.state.started_at).total_seconds()

    return HealthResponse(
        status="healthy",
        store_backend=service.store.name,
        uptime_seconds=uptime,
    )


@router.get("/state")
async def read_state(service: StateService = Depends(get_service)) -> JSONResponse:
    """
    Get the full state document.

    Returns the default document (all spots free, nobody queued) when the
    store holds nothing yet.
    """
    state = await service.get_state()
    return JSONResponse(content=state.to_document())


@router.post("/state", response_model=OkResponse)
async def post_action(
    request: Request,
    x_key: Optional[str] = Header(default=None),
    service: StateService = Depends(get_service),
) -> OkResponse:
    """
    Apply one action to the state document.

    Body: ``{"action": "<name>", "payload": {...}}``. When a shared secret is
    configured it must be sent in the ``X-Key`` header.
    """
    service.authorize(x_key)

    raw = await request.body()
    try:
        body = json.loads(raw) if raw else {}
    except ValueError as e:
        raise InvalidInput("Request body is not valid JSON") from e

    action = parse_action(body)
    await service.apply(action)
    return OkResponse(ok=True)


@router.get("/metrics")
async def prometheus_metrics() -> Response:
    """
    Prometheus metrics endpoint.

    Returns metrics in Prometheus text format including:
    - charger_queue_actions_total: Counter of actions by name and outcome
    - charger_queue_write_conflicts_total: Counter of rejected conditional writes
    - charger_queue_store_latency_seconds: Histogram of store call latency
    - charger_queue_spots_total: Total number of spots
    - charger_queue_spots_occupied: Number of occupied spots
    - charger_queue_queue_length: Number of queued users
    """
    return Response(
        content=get_metrics(),
        media_type="text/plain; version=0.0.4; charset=utf-8",
    )
