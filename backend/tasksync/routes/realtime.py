"""
WebSocket endpoints for live task events and notifications.

Clients authenticate with ?token=<Firebase ID token>; sockets with a
missing or invalid token are closed with 1008 (policy violation).
"""

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status

from tasksync.auth import AuthenticatedUser, find_account, verify_token
from tasksync.database import get_session_context
from tasksync.services.notifications import list_user_notifications, serialize_notification
from tasksync.services.realtime import notification_hub, task_events
from tasksync.logging_config import get_logger

logger = get_logger(__name__)

router = APIRouter()


def authenticate_socket(token: str | None) -> AuthenticatedUser | None:
    if not token:
        return None
    try:
        return verify_token(token)
    except Exception as e:
        logger.warning(f"Rejected websocket token: {e}")
        return None


async def _drain(websocket: WebSocket) -> None:
    # Clients don't send anything meaningful; keep reading until they leave
    while True:
        await websocket.receive_text()


@router.websocket("/ws/tasks")
async def task_events_socket(websocket: WebSocket, token: str | None = None):
    if authenticate_socket(token) is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await task_events.connect(websocket)
    try:
        await _drain(websocket)
    except WebSocketDisconnect:
        pass
    finally:
        task_events.disconnect(websocket)


@router.websocket("/ws/notifications")
async def notifications_socket(websocket: WebSocket, token: str | None = None):
    identity = authenticate_socket(token)
    if identity is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    async with get_session_context() as session:
        account = await find_account(session, identity.uid)
        if account is None:
            await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
            return
        unread = await list_user_notifications(session, account.id, unread_only=True)
        backlog = [serialize_notification(n) for n in unread]

    await notification_hub.connect(account.id, websocket, backlog)
    logger.debug(f"Notification socket connected for user {account.id}")
    try:
        await _drain(websocket)
    except WebSocketDisconnect:
        pass
    finally:
        notification_hub.disconnect(account.id, websocket)
