"""Notification side effects of lesson scheduling and report writing.

These run after the primary write has been committed. A failure here is rolled
back on its own and logged; it never undoes the lesson or report.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.enums import NotificationType
from app.models.lesson import Lesson, Report
from app.models.notification import Notification

logger = logging.getLogger(__name__)

LESSON_REMINDER_TITLE = "Lesson reminder"
REPORT_READY_TITLE = "Report ready"


class NotificationTargetMissing(LookupError):
    """The lesson or report a notification points at does not exist."""


async def create_lesson_reminder(db: AsyncSession, lesson_id: int, tutor_id: int) -> Notification:
    result = await db.execute(
        select(Lesson).options(selectinload(Lesson.student)).where(Lesson.id == lesson_id)
    )
    lesson = result.scalar_one_or_none()
    if lesson is None:
        raise NotificationTargetMissing(f"lesson {lesson_id} not found")

    when = lesson.date.strftime("%Y-%m-%d %H:%M")
    notification = Notification(
        type=NotificationType.LESSON_REMINDER,
        title=LESSON_REMINDER_TITLE,
        message=f"{lesson.student.name}'s {lesson.topic} lesson is scheduled for {when}.",
        lesson_id=lesson.id,
        tutor_id=tutor_id,
    )
    db.add(notification)
    await db.flush()
    return notification


async def create_report_ready_notification(db: AsyncSession, report_id: int, tutor_id: int) -> Notification:
    result = await db.execute(
        select(Report)
        .options(selectinload(Report.lesson).selectinload(Lesson.student))
        .where(Report.id == report_id)
    )
    report = result.scalar_one_or_none()
    if report is None:
        raise NotificationTargetMissing(f"report {report_id} not found")

    student = report.lesson.student
    notification = Notification(
        type=NotificationType.REPORT_READY,
        title=REPORT_READY_TITLE,
        message=f"The report for {student.name}'s {student.subject} lesson is ready.",
        report_id=report.id,
        tutor_id=tutor_id,
    )
    db.add(notification)
    await db.flush()
    return notification


async def run_post_commit(
    db: AsyncSession,
    step: Callable[..., Awaitable[Notification]],
    *args,
) -> Notification | None:
    """
    Run `step` after the caller has committed its own work.
    Commits the step's writes; on failure rolls back only those, logs, and returns None.
    """
    try:
        notification = await step(db, *args)
        await db.commit()
        return notification
    except Exception as e:
        await db.rollback()
        logger.exception("Post-commit step %s%r failed: %s", step.__name__, args, e)
        return None


def as_utc(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; everything is stored in UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def is_stale_reminder(notification: Notification, now: datetime) -> bool:
    """A lesson reminder whose lesson has already started."""
    return (
        notification.type == NotificationType.LESSON_REMINDER
        and notification.lesson is not None
        and as_utc(notification.lesson.date) <= now
    )
