import uuid
from datetime import datetime
from pydantic import BaseModel


class UserRead(BaseModel):
    """Public view of a user; never exposes the identity-provider uid."""
    id: uuid.UUID
    email: str
    name: str
    is_admin: bool
    created_at: datetime

    model_config = {"from_attributes": True}
