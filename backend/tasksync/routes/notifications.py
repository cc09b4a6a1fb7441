"""
Notification routes for the Tasksync API.

Every route operates on the caller's own notifications only.
"""

import uuid
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from tasksync.auth import get_current_account
from tasksync.database import get_session
from tasksync.exceptions import NotFoundError
from tasksync.models import Notification, User
from tasksync.schemas import NotificationRead, MessageResponse
from tasksync.services.notifications import (
    list_user_notifications,
    mark_all_as_read,
    mark_as_read,
)
from tasksync.logging_config import get_logger

logger = get_logger(__name__)

router = APIRouter()


@router.get("/", response_model=list[NotificationRead])
async def list_notifications(
    unread: bool = False,
    account: User = Depends(get_current_account),
    session: AsyncSession = Depends(get_session),
) -> list[Notification]:
    """List the caller's notifications, newest first."""
    return await list_user_notifications(session, account.id, unread_only=unread)


@router.patch("/read-all", response_model=MessageResponse)
async def read_all_notifications(
    account: User = Depends(get_current_account),
    session: AsyncSession = Depends(get_session),
) -> MessageResponse:
    """Mark every unread notification of the caller as read."""
    count = await mark_all_as_read(session, account.id)
    logger.info(f"Marked {count} notifications read for user {account.id}")
    return MessageResponse(message="All notifications marked as read")


@router.patch("/{notification_id}/read", response_model=NotificationRead)
async def read_notification(
    notification_id: uuid.UUID,
    account: User = Depends(get_current_account),
    session: AsyncSession = Depends(get_session),
) -> Notification:
    """Mark one notification as read."""
    notification = await mark_as_read(session, notification_id, account.id)
    if notification is None:
        raise NotFoundError("Notification", str(notification_id))
    return notification
