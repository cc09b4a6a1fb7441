import uuid
from datetime import date, datetime
from pydantic import BaseModel, Field

from tasksync.schemas.status import StatusRead
from tasksync.schemas.user import UserRead


class TaskCreate(BaseModel):
    """
    Schema for scheduling a new task.

    Range ordering (start_date <= end_date) is checked by the scheduling
    engine so it surfaces as an invalid_range error, not a 422.
    """
    title: str = Field(min_length=1)
    description: str | None = None
    start_date: date
    end_date: date
    assigned_user_id: uuid.UUID
    status_id: uuid.UUID


class TaskUpdate(BaseModel):
    """
    Schema for partially updating a task.

    Only fields present in the request body are applied; sending
    "description": null clears the description.
    """
    title: str | None = Field(default=None, min_length=1)
    description: str | None = None
    start_date: date | None = None
    end_date: date | None = None
    assigned_user_id: uuid.UUID | None = None
    status_id: uuid.UUID | None = None


class TaskReassign(BaseModel):
    """Schema for handing a task to another user."""
    assigned_user_id: uuid.UUID


class TaskRead(BaseModel):
    """Schema for reading a task with its assignee and status."""
    id: uuid.UUID
    title: str
    description: str | None
    start_date: date
    end_date: date
    assigned_user_id: uuid.UUID
    status_id: uuid.UUID
    assigned_user: UserRead | None = None
    status: StatusRead | None = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
