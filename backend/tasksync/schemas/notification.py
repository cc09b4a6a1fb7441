import uuid
from datetime import datetime
from pydantic import BaseModel


class NotificationRead(BaseModel):
    """Schema for reading a notification (REST and websocket payloads)."""
    id: uuid.UUID
    user_id: uuid.UUID
    task_id: uuid.UUID | None
    type: str
    message: str
    read: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class MessageResponse(BaseModel):
    """Plain confirmation body."""
    message: str
