from tasksync.schemas.task import TaskCreate, TaskUpdate, TaskReassign, TaskRead
from tasksync.schemas.status import StatusRead
from tasksync.schemas.user import UserRead
from tasksync.schemas.notification import NotificationRead, MessageResponse

__all__ = [
    "TaskCreate",
    "TaskUpdate",
    "TaskReassign",
    "TaskRead",
    "StatusRead",
    "UserRead",
    "NotificationRead",
    "MessageResponse",
]
