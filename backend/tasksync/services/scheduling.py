"""
Scheduling engine: task CRUD with no-overlap enforcement.

Invariant upheld by every successful operation: no user is assigned two
tasks whose inclusive date ranges intersect. The availability ledger is
kept in lockstep with each task mutation in the same transaction.

Side effects happen in a fixed order once the transaction commits:

    task write -> ledger upsert -> commit -> notification enqueue -> event emit

Notification enqueue is fire-and-forget: failures are logged and never
fail the operation. Event emission is best effort.

Row locks are always taken task first, then user rows in id order.
"""

import uuid
from datetime import date, datetime
from typing import Protocol

from sqlalchemy import or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from tasksync.exceptions import NotFoundError, SchedulingConflictError
from tasksync.models import Task, TaskStatus, User, NotificationAction
from tasksync.schemas import TaskCreate, TaskUpdate
from tasksync.services.availability import (
    find_conflicts,
    lock_task,
    lock_user,
    remove_availability,
    upsert_availability,
    validate_range,
)
from tasksync.services.realtime import TaskEvent
from tasksync.logging_config import get_logger

logger = get_logger(__name__)

# Fields whose change can create an overlap
SCHEDULE_FIELDS = ("start_date", "end_date", "assigned_user_id")


class NotificationSink(Protocol):
    async def enqueue(
        self,
        user_id: uuid.UUID,
        task_id: uuid.UUID,
        action: NotificationAction,
    ) -> None: ...


class EventSink(Protocol):
    async def emit(self, event: TaskEvent, task_id: uuid.UUID) -> None: ...


class SchedulingEngine:
    """
    Request-scoped entry point for every task read and write.

    Collaborators are passed in explicitly: the session that owns the
    transaction, a notification sink (the arq queue in production) and an
    event sink (the task websocket hub).
    """

    def __init__(
        self,
        session: AsyncSession,
        notifier: NotificationSink,
        events: EventSink,
    ):
        self.session = session
        self.notifier = notifier
        self.events = events

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def list_tasks(
        self,
        status_id: uuid.UUID | None = None,
        assigned_user_id: uuid.UUID | None = None,
        search: str | None = None,
    ) -> list[Task]:
        """
        List tasks, newest first.

        search matches title or description, case-insensitively.
        """
        query = select(Task)
        if status_id:
            query = query.where(Task.status_id == status_id)
        if assigned_user_id:
            query = query.where(Task.assigned_user_id == assigned_user_id)
        if search:
            pattern = f"%{search}%"
            query = query.where(
                or_(Task.title.ilike(pattern), Task.description.ilike(pattern))
            )
        query = query.order_by(Task.created_at.desc())

        result = await self.session.execute(query)
        tasks = list(result.scalars().all())

        logger.debug(f"Listed {len(tasks)} tasks")
        return tasks

    async def get_task(self, task_id: uuid.UUID) -> Task:
        """Load a task with fresh assignee/status relations."""
        result = await self.session.execute(
            select(Task)
            .where(Task.id == task_id)
            .execution_options(populate_existing=True)
        )
        task = result.scalars().first()
        if not task:
            raise NotFoundError("Task", str(task_id))
        return task

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def create_task(self, task_in: TaskCreate) -> Task:
        validate_range(task_in.start_date, task_in.end_date)

        await self._require_user(task_in.assigned_user_id)
        await self._require_status(task_in.status_id)
        await self._ensure_available(
            task_in.assigned_user_id, task_in.start_date, task_in.end_date,
        )

        task = Task(**task_in.model_dump())
        self.session.add(task)
        await self.session.flush()

        await upsert_availability(self.session, task)
        await self.session.commit()

        logger.info(
            f"Created task: id={task.id} title='{task.title}' "
            f"user={task.assigned_user_id} range=[{task.start_date}, {task.end_date}]"
        )

        await self._notify(task.assigned_user_id, task.id, NotificationAction.CREATED)
        await self._emit(TaskEvent.CREATED, task.id)

        return await self.get_task(task.id)

    async def update_task(self, task_id: uuid.UUID, task_in: TaskUpdate) -> Task:
        """
        Apply a partial update.

        When dates or the assignee are touched, the effective schedule is
        re-validated and scanned for overlaps excluding the task itself;
        a task may keep, shrink or shift its own range freely.
        """
        task = await self._lock_task(task_id)
        update_data = task_in.model_dump(exclude_unset=True)

        logger.info(f"Updating task {task_id}: {update_data}")

        previous_user_id = task.assigned_user_id
        previous_schedule = (task.assigned_user_id, task.start_date, task.end_date)
        new_user_id, new_start, new_end = previous_schedule

        if any(update_data.get(field) is not None for field in SCHEDULE_FIELDS):
            new_start = update_data.get("start_date") or task.start_date
            new_end = update_data.get("end_date") or task.end_date
            new_user_id = update_data.get("assigned_user_id") or task.assigned_user_id

            validate_range(new_start, new_end)

            if new_user_id != previous_user_id:
                await self._require_user(new_user_id, previous_user_id)

            if (new_user_id, new_start, new_end) != previous_schedule:
                if new_user_id == previous_user_id:
                    await lock_user(self.session, new_user_id)
                await self._ensure_available(new_user_id, new_start, new_end, exclude_task_id=task.id)

        if update_data.get("status_id") is not None:
            await self._require_status(update_data["status_id"])
            task.status_id = update_data["status_id"]

        if update_data.get("title"):
            task.title = update_data["title"]
        if "description" in update_data:
            task.description = update_data["description"]

        task.assigned_user_id = new_user_id
        task.start_date = new_start
        task.end_date = new_end
        task.updated_at = datetime.utcnow()
        await self.session.flush()

        schedule_changed = (new_user_id, new_start, new_end) != previous_schedule
        if schedule_changed:
            await upsert_availability(self.session, task)
        await self.session.commit()

        if new_user_id != previous_user_id:
            logger.info(f"Task {task_id} moved from user {previous_user_id} to {new_user_id}")
            await self._notify(new_user_id, task.id, NotificationAction.REASSIGNED)

        await self._emit(TaskEvent.UPDATED, task.id)

        return await self.get_task(task.id)

    async def reassign_task(self, task_id: uuid.UUID, assigned_user_id: uuid.UUID) -> Task:
        """
        Hand a task to another user, keeping its date range.

        Reassigning to the current assignee is a successful no-op: no
        overlap scan, no ledger write, no notification, no event.
        """
        task = await self._lock_task(task_id)

        if task.assigned_user_id == assigned_user_id:
            logger.debug(f"Task {task_id} already assigned to {assigned_user_id}; nothing to do")
            return task

        await self._require_user(assigned_user_id, task.assigned_user_id)
        await self._ensure_available(
            assigned_user_id, task.start_date, task.end_date, exclude_task_id=task.id,
        )

        previous_user_id = task.assigned_user_id
        task.assigned_user_id = assigned_user_id
        task.updated_at = datetime.utcnow()
        await self.session.flush()

        await upsert_availability(self.session, task)
        await self.session.commit()

        logger.info(f"Reassigned task {task_id} from user {previous_user_id} to {assigned_user_id}")

        await self._notify(assigned_user_id, task.id, NotificationAction.REASSIGNED)
        await self._emit(TaskEvent.REASSIGNED, task.id)

        return await self.get_task(task.id)

    async def delete_task(self, task_id: uuid.UUID) -> None:
        """Remove a task and its ledger row. No notification is sent."""
        task = await self._lock_task(task_id)

        logger.info(f"Deleting task {task_id}: '{task.title}'")

        # Ledger row goes first so the tasks FK is never left dangling
        removed = await remove_availability(self.session, task_id)
        if not removed:
            logger.warning(f"Task {task_id} had no availability record")

        await self.session.delete(task)
        await self.session.commit()

        await self._emit(TaskEvent.DELETED, task_id)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _lock_task(self, task_id: uuid.UUID) -> Task:
        """Lock the task row for the rest of the transaction, or 404."""
        task = await lock_task(self.session, task_id)
        if not task:
            raise NotFoundError("Task", str(task_id))
        return task

    async def _require_user(
        self,
        user_id: uuid.UUID,
        previous_user_id: uuid.UUID | None = None,
    ) -> User:
        """
        Lock the assignee's row for the rest of the transaction, or 404.

        On a move the previous assignee is locked too. Rows are taken in id
        order so two opposite moves between the same users cannot deadlock.
        """
        locked = {}
        for locked_id in sorted({user_id, previous_user_id} - {None}, key=str):
            locked[locked_id] = await lock_user(self.session, locked_id)

        if not locked[user_id]:
            raise NotFoundError("User", str(user_id))
        return locked[user_id]

    async def _require_status(self, status_id: uuid.UUID) -> TaskStatus:
        status = await self.session.get(TaskStatus, status_id)
        if not status:
            raise NotFoundError("Status", str(status_id))
        return status

    async def _ensure_available(
        self,
        user_id: uuid.UUID,
        start_date: date,
        end_date: date,
        exclude_task_id: uuid.UUID | None = None,
    ) -> None:
        conflicts = await find_conflicts(
            self.session, user_id, start_date, end_date, exclude_task_id,
        )
        if conflicts:
            conflicting_ids = [str(record.task_id) for record in conflicts]
            logger.warning(
                f"Scheduling conflict for user {user_id} on [{start_date}, {end_date}]: "
                f"overlaps {conflicting_ids}"
            )
            raise SchedulingConflictError(str(user_id), conflicting_ids)

    async def _notify(
        self,
        user_id: uuid.UUID,
        task_id: uuid.UUID,
        action: NotificationAction,
    ) -> None:
        try:
            await self.notifier.enqueue(user_id, task_id, action)
        except Exception as e:
            logger.exception(f"Error adding notification job ({action.value}) for task {task_id}: {e}")

    async def _emit(self, event: TaskEvent, task_id: uuid.UUID) -> None:
        try:
            await self.events.emit(event, task_id)
        except Exception as e:
            logger.warning(f"Failed to emit {event.value} for task {task_id}: {e}")
