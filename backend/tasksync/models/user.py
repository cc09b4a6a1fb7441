import uuid
from datetime import datetime
from sqlmodel import SQLModel, Field


class User(SQLModel, table=True):
    """
    A person tasks can be assigned to.

    Rows are provisioned the first time a Firebase identity hits the API;
    firebase_uid links the row back to that identity.
    """

    __tablename__ = "users"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    firebase_uid: str = Field(unique=True, index=True)
    email: str = Field(unique=True, index=True)
    name: str
    is_admin: bool = Field(default=False)

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
