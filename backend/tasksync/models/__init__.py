from tasksync.models.user import User
from tasksync.models.status import TaskStatus
from tasksync.models.task import Task
from tasksync.models.availability import UserAvailability
from tasksync.models.notification import Notification, NotificationAction

__all__ = [
    "User",
    "TaskStatus",
    "Task",
    "UserAvailability",
    "Notification",
    "NotificationAction",
]
