import uuid
from pydantic import BaseModel


class StatusRead(BaseModel):
    """Schema for reading a status catalog entry."""
    id: uuid.UUID
    name: str
    slug: str

    model_config = {"from_attributes": True}
