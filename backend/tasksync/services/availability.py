"""
Availability ledger maintenance and the overlap scan.

The ledger (user_availability) holds one row per task mirroring its current
assignee and date range. Conflict checks read it; only the scheduling engine
writes it, inside the same transaction as the task mutation.

Overlap uses closed intervals on both ends:

    existing.start <= new.end AND existing.end >= new.start

so a task ending on the day another begins counts as a conflict.
"""

import uuid
from datetime import date, datetime

from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from tasksync.exceptions import InvalidRangeError
from tasksync.models import Task, User, UserAvailability
from tasksync.logging_config import get_logger

logger = get_logger(__name__)


def validate_range(start_date: date, end_date: date) -> None:
    """Raise InvalidRangeError unless start_date <= end_date."""
    if start_date > end_date:
        raise InvalidRangeError(start_date, end_date)


async def lock_user(
    session: AsyncSession,
    user_id: uuid.UUID,
) -> User | None:
    """
    Load a user row with SELECT ... FOR UPDATE.

    Holding this lock until commit serializes scheduling for one assignee,
    so two requests cannot both pass the overlap scan against the same
    snapshot. Backends without row locks (SQLite) simply ignore the clause.
    """
    result = await session.execute(
        select(User).where(User.id == user_id).with_for_update()
    )
    return result.scalars().first()


async def lock_task(
    session: AsyncSession,
    task_id: uuid.UUID,
) -> Task | None:
    """
    Load a task row with SELECT ... FOR UPDATE, refreshing any cached copy.

    Writers of one task take this before any user lock, so each of them
    scans and writes against the range and assignee the previous one
    committed.
    """
    result = await session.execute(
        select(Task)
        .where(Task.id == task_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    return result.scalars().first()


async def find_conflicts(
    session: AsyncSession,
    user_id: uuid.UUID,
    start_date: date,
    end_date: date,
    exclude_task_id: uuid.UUID | None = None,
) -> list[UserAvailability]:
    """Return ledger rows of user_id whose range intersects [start_date, end_date]."""
    query = select(UserAvailability).where(
        UserAvailability.user_id == user_id,
        UserAvailability.start_date <= end_date,
        UserAvailability.end_date >= start_date,
    )
    if exclude_task_id is not None:
        query = query.where(UserAvailability.task_id != exclude_task_id)

    result = await session.execute(query)
    conflicts = list(result.scalars().all())

    logger.debug(
        f"Overlap scan user={user_id} range=[{start_date}, {end_date}] "
        f"exclude={exclude_task_id}: {len(conflicts)} conflicts"
    )
    return conflicts


async def upsert_availability(
    session: AsyncSession,
    task: Task,
) -> UserAvailability:
    """Make the ledger row for task mirror its assignee and range."""
    result = await session.execute(
        select(UserAvailability).where(UserAvailability.task_id == task.id)
    )
    record = result.scalars().first()

    if record is None:
        record = UserAvailability(
            task_id=task.id,
            user_id=task.assigned_user_id,
            start_date=task.start_date,
            end_date=task.end_date,
        )
        session.add(record)
    else:
        record.user_id = task.assigned_user_id
        record.start_date = task.start_date
        record.end_date = task.end_date
        record.updated_at = datetime.utcnow()

    await session.flush()
    return record


async def remove_availability(
    session: AsyncSession,
    task_id: uuid.UUID,
) -> bool:
    """Delete the ledger row for task_id. Returns False if there was none."""
    result = await session.execute(
        delete(UserAvailability).where(UserAvailability.task_id == task_id)
    )
    return result.rowcount > 0
