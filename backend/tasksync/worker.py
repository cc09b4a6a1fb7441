"""
ARQ Worker for background task processing.

This worker handles:
- send_task_notification: Persists a "task assigned/reassigned" notification
  and publishes it for live delivery

Usage:
    arq tasksync.worker.WorkerSettings
"""

import uuid

from arq import create_pool
from arq.connections import RedisSettings, ArqRedis

from tasksync.config import get_settings
from tasksync.models import NotificationAction
from tasksync.services.notifications import send_task_notification
from tasksync.logging_config import setup_logging, get_logger

# Initialize logging for the worker
setup_logging()
logger = get_logger(__name__)

settings = get_settings()


def parse_redis_url(url: str) -> RedisSettings:
    """Parse redis URL into RedisSettings."""
    # redis://localhost:6379/2 -> host=localhost, port=6379, database=2
    url = url.replace("redis://", "")
    database = 0
    if "/" in url:
        url, db_part = url.split("/", 1)
        if db_part:
            database = int(db_part)
    if ":" in url:
        host, port = url.split(":")
        return RedisSettings(host=host, port=int(port), database=database)
    return RedisSettings(host=url, database=database)


async def startup(ctx: dict) -> None:
    logger.info("ARQ Worker starting up...")
    logger.info(f"Redis: {settings.redis_url}")


async def shutdown(ctx: dict) -> None:
    logger.info("ARQ Worker shutting down...")


class WorkerSettings:
    """ARQ Worker configuration."""

    functions = [send_task_notification]
    on_startup = startup
    on_shutdown = shutdown
    redis_settings = parse_redis_url(settings.redis_url)
    max_jobs = 10
    max_tries = settings.notification_max_tries
    job_timeout = 60


# Redis pool for enqueuing jobs from the API
_arq_pool: ArqRedis | None = None


async def get_arq_pool() -> ArqRedis:
    """Get or create the ARQ Redis pool for enqueuing jobs."""
    global _arq_pool
    if _arq_pool is None:
        logger.debug("Creating ARQ Redis pool")
        _arq_pool = await create_pool(
            parse_redis_url(settings.redis_url)
        )
    return _arq_pool


class NotificationQueue:
    """Notification sink backed by the arq queue."""

    async def enqueue(
        self,
        user_id: uuid.UUID,
        task_id: uuid.UUID,
        action: NotificationAction,
    ) -> None:
        pool = await get_arq_pool()
        logger.debug(f"Enqueuing notification job: user={user_id} task={task_id} action={action.value}")
        await pool.enqueue_job("send_task_notification", str(user_id), str(task_id), action.value)


notification_queue = NotificationQueue()
