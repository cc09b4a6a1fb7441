import uuid
from datetime import datetime
from sqlmodel import SQLModel, Field


class TaskStatus(SQLModel, table=True):
    """Workflow status catalog entry (Pending, In Progress, ...)."""

    __tablename__ = "task_statuses"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    name: str = Field(unique=True)
    slug: str = Field(unique=True, index=True)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
