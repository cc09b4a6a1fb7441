"""
Task notifications: persistence, queries, and the arq delivery job.

The scheduling engine only enqueues; this module does the work in the
worker process:

1. Load the user and task (quietly skip if either is gone)
2. Persist a Notification row
3. Publish it on the Redis channel the API relays to websockets

Failed attempts are retried by arq with exponential backoff. Once the
retry budget is spent the job is dropped and only logged.
"""

import json
import uuid

from arq import Retry
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from tasksync.config import get_settings
from tasksync.database import get_session_context
from tasksync.models import Notification, NotificationAction, Task, User
from tasksync.schemas import NotificationRead
from tasksync.logging_config import get_logger

logger = get_logger(__name__)


def build_task_message(task: Task, action: NotificationAction) -> tuple[str, str]:
    """Return (type, message) for a task notification."""
    if action == NotificationAction.CREATED:
        return "task_assigned", f'A new task "{task.title}" has been assigned to you.'
    return "task_reassigned", f'The task "{task.title}" has been reassigned to you.'


def serialize_notification(notification: Notification) -> dict:
    """JSON-safe dict used for websocket pushes and the Redis channel."""
    return NotificationRead.model_validate(notification).model_dump(mode="json")


def notification_backoff(job_try: int) -> float:
    """Seconds to wait before the next attempt: base, 2*base, 4*base, ..."""
    base = get_settings().notification_backoff_seconds
    return base * 2 ** (job_try - 1)


async def create_task_notification(
    session: AsyncSession,
    user_id: uuid.UUID,
    task_id: uuid.UUID,
    action: NotificationAction,
) -> Notification | None:
    """Persist a notification, or return None if the user or task vanished."""
    user = await session.get(User, user_id)
    task = await session.get(Task, task_id)

    if not user or not task:
        logger.info(f"Skipping {action.value} notification: user={user_id} task={task_id} no longer exist")
        return None

    notification_type, message = build_task_message(task, action)
    notification = Notification(
        user_id=user_id,
        task_id=task_id,
        type=notification_type,
        message=message,
        read=False,
    )
    session.add(notification)
    await session.flush()
    await session.refresh(notification)

    logger.info(f"Created notification {notification.id} ({notification_type}) for user {user_id}")
    return notification


async def list_user_notifications(
    session: AsyncSession,
    user_id: uuid.UUID,
    unread_only: bool = False,
) -> list[Notification]:
    query = select(Notification).where(Notification.user_id == user_id)
    if unread_only:
        query = query.where(Notification.read == False)  # noqa: E712
    query = query.order_by(Notification.created_at.desc())

    result = await session.execute(query)
    return list(result.scalars().all())


async def mark_as_read(
    session: AsyncSession,
    notification_id: uuid.UUID,
    user_id: uuid.UUID,
) -> Notification | None:
    """Mark one notification read; None if it isn't this user's."""
    result = await session.execute(
        select(Notification).where(
            Notification.id == notification_id,
            Notification.user_id == user_id,
        )
    )
    notification = result.scalars().first()
    if notification is None:
        return None

    notification.read = True
    await session.flush()
    return notification


async def mark_all_as_read(session: AsyncSession, user_id: uuid.UUID) -> int:
    result = await session.execute(
        update(Notification)
        .where(Notification.user_id == user_id, Notification.read == False)  # noqa: E712
        .values(read=True)
    )
    return result.rowcount


async def send_task_notification(
    ctx: dict,
    user_id: str,
    task_id: str,
    action: str,
) -> str:
    """
    ARQ job: create and publish a task notification.

    Args:
        ctx: ARQ context (provides "redis" and "job_try")
        user_id: Recipient
        task_id: Task the notification is about
        action: "created" or "reassigned"

    Returns:
        Status message
    """
    settings = get_settings()
    job_try = ctx.get("job_try", 1)

    try:
        async with get_session_context() as session:
            notification = await create_task_notification(
                session,
                uuid.UUID(user_id),
                uuid.UUID(task_id),
                NotificationAction(action),
            )
            payload = serialize_notification(notification) if notification else None

    except Exception as e:
        if job_try >= settings.notification_max_tries:
            logger.error(
                f"Dropping {action} notification for task {task_id} after {job_try} attempts: {e}"
            )
            return f"Dropped after {job_try} attempts"

        delay = notification_backoff(job_try)
        logger.warning(
            f"Notification job failed (attempt {job_try}/{settings.notification_max_tries}), "
            f"retrying in {delay:.0f}s: {e}"
        )
        raise Retry(defer=delay) from e

    if payload is None:
        return "Skipped: user or task not found"

    # The row is committed; live delivery is best effort and never retried
    try:
        await ctx["redis"].publish(settings.notification_channel, json.dumps(payload))
    except Exception as e:
        logger.warning(f"Stored notification {payload['id']} but could not publish it: {e}")
        return f"Stored notification {payload['id']} (not published)"

    return f"Sent notification {payload['id']}"
