"""Endpoints and websocket handler for the recent activity feed."""

from __future__ import annotations

import json
import logging
import math
import time
import uuid

import anyio
from fastapi import (
    APIRouter,
    Depends,
    Query,
    Request,
    Response,
    WebSocket,
    WebSocketDisconnect,
)
from sqlalchemy.orm import Session

from wyzebank.application.use_cases.activity import (
    DEFAULT_PAGE,
    DEFAULT_PAGE_SIZE,
    ActivityStorageError,
    build_activity_filters,
    list_recent_activities,
)
from wyzebank.config import get_settings
from wyzebank.domain.entities import ActivityRecord
from wyzebank.infrastructure.database import get_db
from wyzebank.infrastructure.notifications import (
    ActivityStream,
    ActivityStreamRejected,
    activity_stream_manager,
    serialize_activity,
)
from wyzebank.infrastructure.security import SessionTokenError
from wyzebank.interfaces.api.dependencies import get_session_user_id, resolve_session_user_id
from wyzebank.interfaces.api.schemas import ActivityRead, ListingMeta, RecentActivityPage

router = APIRouter(prefix="/api/recent-activities", tags=["activity"])
logger = logging.getLogger(__name__)

# Policy violation: missing or invalid session.
_CLOSE_UNAUTHENTICATED = 1008
# Try again later: too many open streams or openings for the user.
_CLOSE_TRY_AGAIN_LATER = 1013


def _record_to_schema(record: ActivityRecord) -> ActivityRead:
    return ActivityRead.model_validate(record)


@router.get("", response_model=RecentActivityPage)
def read_recent_activities(
    request: Request,
    response: Response,
    page: int = Query(1, description="1-based page number"),
    page_size: int | None = Query(
        None, alias="pageSize", description="Items per page, clamped to 5..100"
    ),
    type: str | None = Query(None),
    status_filter: str | None = Query(None, alias="status"),
    source: str | None = Query(None),
    q: str | None = Query(None, description="Free text searched across the activity"),
    date_from: str | None = Query(None, alias="from", description="YYYY-MM-DD"),
    date_to: str | None = Query(None, alias="to", description="YYYY-MM-DD"),
    activity_id: int | None = Query(None, alias="id"),
    db: Session = Depends(get_db),
    user_id: int = Depends(get_session_user_id),
) -> RecentActivityPage:
    """Return the authenticated user's activity, newest first.

    When storage is unavailable the response is still a 200 with an empty
    page and ``meta.degraded`` set, so the dashboard can keep rendering.
    """

    started = time.perf_counter()
    request_id = request.headers.get("X-Request-ID", str(uuid.uuid4()))
    response.headers["Cache-Control"] = "no-store"
    response.headers["X-Request-ID"] = request_id

    def _meta(**flags) -> ListingMeta:
        return ListingMeta(
            request_id=request_id,
            duration_ms=round((time.perf_counter() - started) * 1000),
            **flags,
        )

    filters = build_activity_filters(
        type=type,
        status=status_filter,
        source=source,
        query=q,
        date_from=date_from,
        date_to=date_to,
    )
    try:
        result = list_recent_activities(
            db,
            user_id=user_id,
            page=page,
            page_size=page_size,
            filters=filters,
            activity_id=activity_id,
        )
    except ActivityStorageError:
        logger.warning("Serving a degraded activity page for user %s", user_id)
        return RecentActivityPage(
            page=DEFAULT_PAGE,
            page_size=DEFAULT_PAGE_SIZE,
            total=0,
            items=[],
            has_next_page=False,
            next_page=None,
            meta=_meta(degraded=True, error="TemporaryUnavailable"),
        )

    return RecentActivityPage(
        page=result.page,
        page_size=result.page_size,
        total=result.total,
        items=[_record_to_schema(record) for record in result.items],
        has_next_page=result.has_next_page,
        next_page=result.next_page,
        meta=_meta(estimate=result.estimate),
    )


async def _forward_records(websocket: WebSocket, stream: ActivityStream) -> None:
    while True:
        record = await stream.next_record()
        try:
            await websocket.send_json(
                {"type": "activity", "data": serialize_activity(record)}
            )
        except WebSocketDisconnect:
            return


async def _send_heartbeats(websocket: WebSocket, interval: float) -> None:
    while True:
        await anyio.sleep(interval)
        try:
            await websocket.send_json({"type": "heartbeat"})
        except WebSocketDisconnect:
            return


async def _answer_client(websocket: WebSocket) -> None:
    """Serve client frames until the connection is closed."""

    while True:
        try:
            raw = await websocket.receive_text()
        except WebSocketDisconnect:
            return
        try:
            message = json.loads(raw)
        except ValueError:
            continue
        if isinstance(message, dict) and message.get("type") == "ping":
            await websocket.send_json({"type": "pong"})


async def _reject(websocket: WebSocket, code: int, reason: str) -> None:
    """Accept then close with ``code``; before accept only a bare 403 reaches the client."""

    await websocket.accept()
    await websocket.close(code=code, reason=reason)


@router.websocket("/ws")
async def recent_activities_websocket(websocket: WebSocket) -> None:
    """Websocket endpoint that streams new activity of the authenticated user."""

    settings = get_settings()
    try:
        user_id = resolve_session_user_id(
            websocket.cookies.get(settings.session_cookie_name)
        )
    except SessionTokenError as exc:
        logger.info("Rejected activity stream: %s", exc.reason)
        await _reject(websocket, _CLOSE_UNAUTHENTICATED, "unauthorized")
        return

    params = websocket.query_params
    filters = build_activity_filters(
        type=params.get("type"),
        status=params.get("status"),
        source=params.get("source"),
        query=params.get("q"),
        date_from=params.get("from"),
        date_to=params.get("to"),
    )
    try:
        stream = activity_stream_manager.open(
            user_id,
            filters=filters,
            max_pending=settings.activity_stream_queue_size,
            max_streams=settings.activity_streams_per_user,
            rate_capacity=settings.activity_stream_open_rate_capacity,
            rate_refill_seconds=settings.activity_stream_open_rate_refill_seconds,
        )
    except ActivityStreamRejected as exc:
        logger.warning("Activity stream for user %s rejected: %s", user_id, exc.reason)
        await _reject(
            websocket,
            _CLOSE_TRY_AGAIN_LATER,
            f"{exc.reason}; retry after {math.ceil(exc.retry_after)}s",
        )
        return

    try:
        await websocket.accept()
        await websocket.send_json({"type": "ready"})
        async with anyio.create_task_group() as task_group:
            task_group.start_soon(_forward_records, websocket, stream)
            task_group.start_soon(
                _send_heartbeats, websocket, settings.activity_stream_heartbeat_seconds
            )
            await _answer_client(websocket)
            task_group.cancel_scope.cancel()
    finally:
        activity_stream_manager.close(stream)
    logger.debug(
        "Activity stream for user %s closed, %s record(s) dropped", user_id, stream.dropped
    )


__all__ = ["router"]
