import enum
import uuid
from datetime import datetime
from sqlalchemy import Column, ForeignKey, Index, Text, Uuid
from sqlmodel import SQLModel, Field


class NotificationAction(str, enum.Enum):
    """Why a notification job was enqueued."""
    CREATED = "created"
    REASSIGNED = "reassigned"


class Notification(SQLModel, table=True):
    """An in-app message telling a user a task landed on their plate."""

    __tablename__ = "notifications"
    __table_args__ = (
        Index("ix_notifications_user_read", "user_id", "read"),
    )

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    user_id: uuid.UUID = Field(foreign_key="users.id")
    # Survives task deletion; the reference is nulled instead
    task_id: uuid.UUID | None = Field(
        default=None,
        sa_column=Column(Uuid, ForeignKey("tasks.id", ondelete="SET NULL"), nullable=True),
    )
    type: str
    message: str = Field(sa_column=Column(Text, nullable=False))
    read: bool = Field(default=False)

    created_at: datetime = Field(default_factory=datetime.utcnow)
