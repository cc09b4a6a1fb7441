import uuid
from datetime import date, datetime
from sqlalchemy import Index
from sqlmodel import SQLModel, Field


class UserAvailability(SQLModel, table=True):
    """
    Ledger row recording who is busy when, for which task.

    Exactly one row per existing task (task_id is unique), always mirroring
    the task's current assignee and date range. Written only by the
    scheduling engine as part of the same transaction as the task itself.
    """

    __tablename__ = "user_availability"
    __table_args__ = (
        Index("ix_user_availability_user_range", "user_id", "start_date", "end_date"),
    )

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    task_id: uuid.UUID = Field(foreign_key="tasks.id", unique=True)
    user_id: uuid.UUID = Field(foreign_key="users.id")
    start_date: date
    end_date: date

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
