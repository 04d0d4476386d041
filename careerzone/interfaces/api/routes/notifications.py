"""Endpoints and websocket handler for user notifications."""

from __future__ import annotations

import logging

from fastapi import (
    APIRouter,
    Depends,
    Query,
    Response,
    WebSocket,
    WebSocketDisconnect,
    status,
)

from careerzone.application.use_cases.notifications import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    NotificationLedger,
    NotificationPayload,
)
from careerzone.config import get_settings
from careerzone.domain.entities import EntityReference, Notification
from careerzone.domain.exceptions import LedgerError
from careerzone.infrastructure.database import SessionLocal
from careerzone.infrastructure.notifications import (
    notification_manager,
    serialize_notification,
    websocket_notifier,
)
from careerzone.interfaces.api.dependencies import (
    get_current_user_id,
    get_notification_ledger,
    require_internal_caller,
    resolve_user_id,
)
from careerzone.interfaces.api.routes_helpers import to_http_exception
from careerzone.interfaces.api.schemas import (
    MarkAllReadRead,
    NotificationCreate,
    NotificationPageRead,
    NotificationRead,
    PageMeta,
    UnreadCountRead,
)

router = APIRouter(prefix="/notifications", tags=["notifications"])
logger = logging.getLogger(__name__)


def _to_read_model(notification: Notification) -> NotificationRead:
    return NotificationRead.model_validate(notification)


@router.post(
    "",
    response_model=NotificationRead,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_internal_caller)],
)
def record_notification_event(
    event: NotificationCreate,
    response: Response,
    ledger: NotificationLedger = Depends(get_notification_ledger),
) -> NotificationRead:
    """Store an event; events sharing an aggregation key update one notification."""

    payload = NotificationPayload(
        title=event.title,
        message=event.message,
        entity=EntityReference(type=event.entity.type, id=event.entity.id)
        if event.entity
        else None,
        metadata=event.metadata,
    )
    try:
        notification, created = ledger.record_event(
            event.user_id, event.type, payload, aggregation_key=event.aggregation_key
        )
    except LedgerError as exc:
        raise to_http_exception(exc) from exc
    if not created:
        response.status_code = status.HTTP_200_OK
    return _to_read_model(notification)


@router.get("", response_model=NotificationPageRead)
def list_notifications(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    unread_only: bool = False,
    ledger: NotificationLedger = Depends(get_notification_ledger),
    user_id: str = Depends(get_current_user_id),
) -> NotificationPageRead:
    """Return the caller's notifications, newest first."""

    result = ledger.list_for_user(user_id, page=page, limit=limit, unread_only=unread_only)
    return NotificationPageRead(
        data=[_to_read_model(notification) for notification in result.items],
        meta=PageMeta(
            current_page=result.current_page,
            total_pages=result.total_pages,
            total_items=result.total_items,
            limit=result.limit,
        ),
    )


@router.get("/unread-count", response_model=UnreadCountRead)
def unread_count(
    ledger: NotificationLedger = Depends(get_notification_ledger),
    user_id: str = Depends(get_current_user_id),
) -> UnreadCountRead:
    return UnreadCountRead(count=ledger.get_unread_count(user_id))


@router.patch("/read-all", response_model=MarkAllReadRead)
def mark_all_notifications_read(
    ledger: NotificationLedger = Depends(get_notification_ledger),
    user_id: str = Depends(get_current_user_id),
) -> MarkAllReadRead:
    return MarkAllReadRead(modified_count=ledger.mark_all_read(user_id))


@router.patch("/{notification_id}/read", response_model=NotificationRead)
def mark_notification_read(
    notification_id: int,
    ledger: NotificationLedger = Depends(get_notification_ledger),
    user_id: str = Depends(get_current_user_id),
) -> NotificationRead:
    """Mark a single notification as read; repeating the call is harmless."""

    try:
        notification = ledger.mark_read(notification_id, user_id)
    except LedgerError as exc:
        raise to_http_exception(exc) from exc
    return _to_read_model(notification)


def _ledger_for(session) -> NotificationLedger:
    settings = get_settings()
    return NotificationLedger(
        session,
        notifier=websocket_notifier,
        max_attempts=settings.notification_max_attempts,
        retention_days=settings.notification_retention_days,
    )


@router.websocket("/ws")
async def notifications_websocket(websocket: WebSocket) -> None:
    """Websocket endpoint that streams notifications to the authenticated user."""

    token = websocket.query_params.get("token")
    if not token:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    try:
        user_id = resolve_user_id(token)
    except ValueError:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    with SessionLocal() as session:
        pending = _ledger_for(session).list_unread(user_id)

    await notification_manager.connect(user_id, websocket)
    try:
        await websocket.send_json(
            {"type": "init", "data": [serialize_notification(n) for n in pending]}
        )
        while True:
            try:
                message = await websocket.receive_json()
            except WebSocketDisconnect:
                raise
            except ValueError:
                continue

            if not isinstance(message, dict):
                continue

            message_type = message.get("type")
            if message_type == "ping":
                await websocket.send_json({"type": "pong"})
                continue

            if message_type == "ack":
                ids = [value for value in message.get("ids", []) if isinstance(value, int)]
                if ids:
                    with SessionLocal() as session:
                        changed = _ledger_for(session).mark_many_read(ids, user_id)
                    await websocket.send_json({"type": "ack", "data": {"modified_count": changed}})
                continue
    except WebSocketDisconnect:
        notification_manager.disconnect(user_id, websocket)
    except Exception:
        notification_manager.disconnect(user_id, websocket)
        logger.exception("Notification websocket for user %s failed", user_id)
        raise


__all__ = ["router"]
