"""
User directory routes for the Tasksync API (read-only).
"""

import uuid
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from tasksync.auth import get_current_account
from tasksync.database import get_session
from tasksync.exceptions import NotFoundError
from tasksync.models import User
from tasksync.schemas import UserRead
from tasksync.logging_config import get_logger

logger = get_logger(__name__)

router = APIRouter()


@router.get("/", response_model=list[UserRead])
async def list_users(
    account: User = Depends(get_current_account),
    session: AsyncSession = Depends(get_session),
) -> list[User]:
    """List users tasks can be assigned to."""
    result = await session.execute(select(User).order_by(User.name))
    users = list(result.scalars().all())

    logger.debug(f"Listed {len(users)} users")

    return users


@router.get("/me", response_model=UserRead)
async def get_me(
    account: User = Depends(get_current_account),
) -> User:
    """Get the caller's own user record."""
    return account


@router.get("/{user_id}", response_model=UserRead)
async def get_user(
    user_id: uuid.UUID,
    account: User = Depends(get_current_account),
    session: AsyncSession = Depends(get_session),
) -> User:
    """Get a user by ID."""
    user = await session.get(User, user_id)
    if not user:
        raise NotFoundError("User", str(user_id))
    return user
