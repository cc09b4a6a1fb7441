#!/usr/bin/env python3
"""
Seed script for the status catalog, demo users and demo schedules.

Statuses and users are upserted by slug / email, so the script is safe to
run repeatedly. Demo tasks are booked through the SchedulingEngine, which
keeps the availability ledger consistent and skips any slot that would
overlap an existing booking.

Usage:
    python -m scripts.seed [--clear] [--tasks 20]

Options:
    --clear      Clear existing data before seeding
    --tasks N    Number of demo tasks to try to schedule (default: 0)
"""

import argparse
import asyncio
import random
import time
import uuid
from datetime import date, timedelta

from sqlalchemy import text
from sqlmodel import select

from tasksync.database import async_session_maker, init_db
from tasksync.exceptions import SchedulingConflictError
from tasksync.models import NotificationAction, TaskStatus, User
from tasksync.schemas import TaskCreate
from tasksync.services.realtime import TaskEvent
from tasksync.services.scheduling import SchedulingEngine


STATUSES = [
    {"name": "Pending", "slug": "pending"},
    {"name": "In Progress", "slug": "in-progress"},
    {"name": "Completed", "slug": "completed"},
    {"name": "Cancelled", "slug": "cancelled"},
]

DEMO_USERS = [
    {"firebase_uid": "seed-admin", "email": "admin@tasksync.local", "name": "Admin", "is_admin": True},
    {"firebase_uid": "seed-alex", "email": "alex@tasksync.local", "name": "Alex Morgan"},
    {"firebase_uid": "seed-sam", "email": "sam@tasksync.local", "name": "Sam Rivera"},
    {"firebase_uid": "seed-jordan", "email": "jordan@tasksync.local", "name": "Jordan Lee"},
]


class SilentSinks:
    """Notification and event sink that drops everything (no worker, no sockets)."""

    async def enqueue(self, user_id: uuid.UUID, task_id: uuid.UUID, action: NotificationAction) -> None:
        pass

    async def emit(self, event: TaskEvent, task_id: uuid.UUID) -> None:
        pass


async def clear_data():
    """Clear all existing data."""
    print("Clearing existing data...")
    async with async_session_maker() as session:
        await session.execute(text(
            "TRUNCATE notifications, user_availability, tasks, task_statuses, users CASCADE"
        ))
        await session.commit()
    print("Data cleared.")


async def seed_statuses() -> list[TaskStatus]:
    async with async_session_maker() as session:
        statuses = []
        for status_data in STATUSES:
            result = await session.execute(
                select(TaskStatus).where(TaskStatus.slug == status_data["slug"])
            )
            status = result.scalars().first()
            if status is None:
                status = TaskStatus(**status_data)
                session.add(status)
                print(f"  + status {status_data['name']}")
            statuses.append(status)
        await session.commit()
        return statuses


async def seed_users() -> list[User]:
    async with async_session_maker() as session:
        users = []
        for user_data in DEMO_USERS:
            result = await session.execute(select(User).where(User.email == user_data["email"]))
            user = result.scalars().first()
            if user is None:
                user = User(**user_data)
                session.add(user)
                print(f"  + user {user_data['email']}")
            users.append(user)
        await session.commit()
        return users


async def seed_tasks(
    users: list[User],
    statuses: list[TaskStatus],
    count: int,
) -> tuple[int, int]:
    """Try to book `count` random tasks; returns (created, skipped)."""
    sinks = SilentSinks()
    today = date.today()
    created = skipped = 0

    for i in range(count):
        start = today + timedelta(days=random.randint(0, 60))
        task_in = TaskCreate(
            title=f"Demo task {i + 1:03d}",
            description="Generated by the seed script",
            start_date=start,
            end_date=start + timedelta(days=random.randint(0, 4)),
            assigned_user_id=random.choice(users).id,
            status_id=random.choice(statuses).id,
        )
        async with async_session_maker() as session:
            engine = SchedulingEngine(session, notifier=sinks, events=sinks)
            try:
                await engine.create_task(task_in)
                created += 1
            except SchedulingConflictError:
                await session.rollback()
                skipped += 1

    return created, skipped


async def main():
    parser = argparse.ArgumentParser(description="Seed statuses, users and demo tasks")
    parser.add_argument("--clear", action="store_true", help="Clear existing data first")
    parser.add_argument("--tasks", type=int, default=0, help="Number of demo tasks to schedule")

    args = parser.parse_args()

    print("=== Tasksync Seed Script ===")

    await init_db()

    if args.clear:
        await clear_data()

    print("Seeding statuses...")
    statuses = await seed_statuses()
    print("Seeding users...")
    users = await seed_users()

    if args.tasks:
        start_time = time.time()
        created, skipped = await seed_tasks(users, statuses, args.tasks)
        print(f"Scheduled {created} tasks, skipped {skipped} overlapping slots "
              f"in {time.time() - start_time:.2f}s")

    print("\n=== Seeding Complete ===")


if __name__ == "__main__":
    asyncio.run(main())
