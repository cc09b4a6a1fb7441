"""
Tasksync - team task scheduling with overlap-free assignments.
"""

import asyncio
import contextlib

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from tasksync.config import get_settings
from tasksync.database import init_db
from tasksync.routes import tasks, statuses, users, notifications, realtime
from tasksync.exceptions import register_exception_handlers
from tasksync.services.realtime import notification_hub, relay_notifications
from tasksync.logging_config import setup_logging, get_logger

# Initialize logging
setup_logging()
logger = get_logger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler for startup/shutdown events."""
    logger.info("Starting Tasksync API...")
    await init_db()
    logger.info("Database initialized")

    relay = asyncio.create_task(relay_notifications(notification_hub))
    yield

    logger.info("Shutting down Tasksync API...")
    relay.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await relay


app = FastAPI(
    title=settings.app_name,
    description="Task scheduling with per-user overlap checks, notifications and live updates",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register custom exception handlers
register_exception_handlers(app)

# Include routers
app.include_router(tasks.router, prefix="/tasks", tags=["Tasks"])
app.include_router(statuses.router, prefix="/statuses", tags=["Statuses"])
app.include_router(users.router, prefix="/users", tags=["Users"])
app.include_router(notifications.router, prefix="/notifications", tags=["Notifications"])
app.include_router(realtime.router, tags=["Realtime"])


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}
