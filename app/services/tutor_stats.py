"""Dashboard counters for a tutor: students, weekly lessons, monthly completion rate."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.enums import LessonStatus
from app.models.lesson import Lesson
from app.models.student import Student


@dataclass(frozen=True)
class StatsWindows:
    start_of_week: datetime
    end_of_week: datetime
    start_of_month: datetime
    start_of_last_month: datetime
    end_of_last_month: datetime


def compute_windows(now: datetime) -> StatsWindows:
    """
    Week runs Sunday 00:00 through Saturday 23:59:59.999999.
    Months are calendar months; "this month" is counted up to `now`.
    """
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
    # weekday(): Monday=0 ... Sunday=6
    start_of_week = midnight - timedelta(days=(now.weekday() + 1) % 7)
    end_of_week = start_of_week + timedelta(days=7) - timedelta(microseconds=1)

    start_of_month = midnight.replace(day=1)
    end_of_last_month = start_of_month - timedelta(microseconds=1)
    start_of_last_month = end_of_last_month.replace(
        day=1, hour=0, minute=0, second=0, microsecond=0
    )
    return StatsWindows(
        start_of_week=start_of_week,
        end_of_week=end_of_week,
        start_of_month=start_of_month,
        start_of_last_month=start_of_last_month,
        end_of_last_month=end_of_last_month,
    )


def completion_rate(completed: int, total: int) -> int:
    """Percentage rounded half up; 0 when there is nothing to complete."""
    if total <= 0:
        return 0
    return math.floor(completed * 100 / total + 0.5)


async def _count_lessons(
    db: AsyncSession,
    tutor_id: int,
    start: datetime,
    end: datetime,
    status: LessonStatus | None = None,
) -> int:
    stmt = (
        select(func.count(Lesson.id))
        .join(Student, Lesson.student_id == Student.id)
        .where(Student.tutor_id == tutor_id, Lesson.date >= start, Lesson.date <= end)
    )
    if status is not None:
        stmt = stmt.where(Lesson.status == status)
    result = await db.execute(stmt)
    return int(result.scalar_one())


async def compute_tutor_stats(db: AsyncSession, tutor_id: int, now: datetime) -> dict:
    w = compute_windows(now)

    r = await db.execute(select(func.count(Student.id)).where(Student.tutor_id == tutor_id))
    total_students = int(r.scalar_one())

    completed_week = await _count_lessons(db, tutor_id, w.start_of_week, w.end_of_week, LessonStatus.COMPLETED)
    scheduled_week = await _count_lessons(db, tutor_id, w.start_of_week, w.end_of_week, LessonStatus.SCHEDULED)

    completed_month = await _count_lessons(db, tutor_id, w.start_of_month, now, LessonStatus.COMPLETED)
    total_month = await _count_lessons(db, tutor_id, w.start_of_month, now)
    completed_last = await _count_lessons(
        db, tutor_id, w.start_of_last_month, w.end_of_last_month, LessonStatus.COMPLETED
    )
    total_last = await _count_lessons(db, tutor_id, w.start_of_last_month, w.end_of_last_month)

    rate_this = completion_rate(completed_month, total_month)
    rate_last = completion_rate(completed_last, total_last)

    return {
        "total_students": total_students,
        # Students carry no creation date yet
        "new_students_this_month": 0,
        "completed_lessons_this_week": completed_week,
        "scheduled_lessons_this_week": scheduled_week,
        "total_lessons_this_week": completed_week + scheduled_week,
        "completion_rate_this_month": rate_this,
        "completion_rate_change": rate_this - rate_last,
        "completed_lessons_this_month": completed_month,
        "total_lessons_this_month": total_month,
        "completed_lessons_last_month": completed_last,
        "total_lessons_last_month": total_last,
    }
