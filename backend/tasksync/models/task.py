import uuid
from datetime import date, datetime
from typing import TYPE_CHECKING, Optional
from sqlalchemy import Column, Index, Text
from sqlmodel import SQLModel, Field, Relationship

if TYPE_CHECKING:
    from tasksync.models.user import User
    from tasksync.models.status import TaskStatus


class Task(SQLModel, table=True):
    """
    A unit of work booked for one user over an inclusive date range.

    Key fields:
    - start_date / end_date: both inclusive, start_date <= end_date
    - assigned_user_id: exactly one owner at a time; no two tasks of the
      same owner may have intersecting ranges
    """

    __tablename__ = "tasks"
    __table_args__ = (
        Index("ix_tasks_date_range", "start_date", "end_date"),
    )

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    title: str = Field(index=True)
    description: str | None = Field(default=None, sa_column=Column(Text, nullable=True))
    start_date: date
    end_date: date

    # Foreign keys
    assigned_user_id: uuid.UUID = Field(foreign_key="users.id", index=True)
    status_id: uuid.UUID = Field(foreign_key="task_statuses.id", index=True)

    # Timestamps
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    # Relationships (loaded eagerly so async reads never lazy-load)
    assigned_user: Optional["User"] = Relationship(
        sa_relationship_kwargs={"lazy": "selectin"},
    )
    status: Optional["TaskStatus"] = Relationship(
        sa_relationship_kwargs={"lazy": "selectin"},
    )
