"""
Status catalog routes for the Tasksync API.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from tasksync.auth import get_current_user
from tasksync.database import get_session
from tasksync.models import TaskStatus
from tasksync.schemas import StatusRead

router = APIRouter(dependencies=[Depends(get_current_user)])


@router.get("/", response_model=list[StatusRead])
async def list_statuses(
    session: AsyncSession = Depends(get_session),
) -> list[TaskStatus]:
    """List the task status catalog."""
    result = await session.execute(select(TaskStatus).order_by(TaskStatus.created_at))
    return list(result.scalars().all())
