"""
Task routes for the Tasksync API.

Thin HTTP layer over the SchedulingEngine; all conflict detection and
ledger bookkeeping happens there.
"""

import uuid
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from tasksync.auth import get_current_user
from tasksync.database import get_session
from tasksync.exceptions import ErrorResponse
from tasksync.models import Task
from tasksync.schemas import TaskCreate, TaskUpdate, TaskReassign, TaskRead, MessageResponse
from tasksync.services.realtime import task_events
from tasksync.services.scheduling import EventSink, NotificationSink, SchedulingEngine
from tasksync.worker import notification_queue

router = APIRouter(
    dependencies=[Depends(get_current_user)],
    responses={
        400: {"model": ErrorResponse, "description": "Invalid range or scheduling conflict"},
        404: {"model": ErrorResponse, "description": "Task, user or status not found"},
        422: {"model": ErrorResponse, "description": "Malformed request"},
    },
)


def get_notification_sink() -> NotificationSink:
    return notification_queue


def get_event_sink() -> EventSink:
    return task_events


def get_scheduling_engine(
    session: AsyncSession = Depends(get_session),
    notifier: NotificationSink = Depends(get_notification_sink),
    events: EventSink = Depends(get_event_sink),
) -> SchedulingEngine:
    return SchedulingEngine(session, notifier=notifier, events=events)


@router.post("/", response_model=TaskRead, status_code=status.HTTP_201_CREATED)
async def create_task(
    task_in: TaskCreate,
    engine: SchedulingEngine = Depends(get_scheduling_engine),
) -> Task:
    """
    Schedule a new task.

    Rejected with 400 if start_date > end_date or the assignee already has
    a task whose range touches [start_date, end_date].
    """
    return await engine.create_task(task_in)


@router.get("/", response_model=list[TaskRead])
async def list_tasks(
    status_id: uuid.UUID | None = None,
    assigned_user_id: uuid.UUID | None = None,
    search: str | None = None,
    engine: SchedulingEngine = Depends(get_scheduling_engine),
) -> list[Task]:
    """
    List tasks.

    Optionally filter by status_id, assigned_user_id, and a case-insensitive
    search over title and description.
    """
    return await engine.list_tasks(
        status_id=status_id,
        assigned_user_id=assigned_user_id,
        search=search,
    )


@router.get("/{task_id}", response_model=TaskRead)
async def get_task(
    task_id: uuid.UUID,
    engine: SchedulingEngine = Depends(get_scheduling_engine),
) -> Task:
    """Get a task by ID."""
    return await engine.get_task(task_id)


@router.patch("/{task_id}/reassign", response_model=TaskRead)
async def reassign_task(
    task_id: uuid.UUID,
    reassign_in: TaskReassign,
    engine: SchedulingEngine = Depends(get_scheduling_engine),
) -> Task:
    """
    Hand a task to another user.

    Reassigning to the current assignee returns the task unchanged.
    """
    return await engine.reassign_task(task_id, reassign_in.assigned_user_id)


@router.patch("/{task_id}", response_model=TaskRead)
async def update_task(
    task_id: uuid.UUID,
    task_in: TaskUpdate,
    engine: SchedulingEngine = Depends(get_scheduling_engine),
) -> Task:
    """Partially update a task."""
    return await engine.update_task(task_id, task_in)


@router.delete("/{task_id}", response_model=MessageResponse)
async def delete_task(
    task_id: uuid.UUID,
    engine: SchedulingEngine = Depends(get_scheduling_engine),
) -> MessageResponse:
    """Delete a task and free up its assignee's dates."""
    await engine.delete_task(task_id)
    return MessageResponse(message="Task deleted successfully")
