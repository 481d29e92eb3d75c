"""Lesson scheduling. A scheduled lesson triggers a reminder notification."""

from __future__ import annotations

from datetime import timezone

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import require_token
from app.core.enums import LessonStatus
from app.core.exceptions import ValidationError
from app.core.tokens import TokenPayload
from app.db.session import get_db
from app.models.lesson import Lesson
from app.models.student import Student
from app.schemas.lesson import LessonCreate, LessonRead
from app.services.notifications import as_utc, create_lesson_reminder, run_post_commit

router = APIRouter()


@router.post("", response_model=LessonRead, status_code=201)
async def schedule_lesson(
    payload: LessonCreate,
    user: TokenPayload = Depends(require_token),
    db: AsyncSession = Depends(get_db),
):
    """Create a lesson for one of the caller's students."""
    result = await db.execute(
        select(Student).where(Student.id == payload.student_id, Student.tutor_id == user.subject_id)
    )
    student = result.scalar_one_or_none()
    if not student:
        raise ValidationError("Student does not exist")

    lesson = Lesson(
        date=as_utc(payload.date).astimezone(timezone.utc),
        topic=payload.topic,
        status=payload.status,
        student_id=student.id,
    )
    db.add(lesson)
    await db.flush()
    await db.refresh(lesson)
    lesson_read = LessonRead.model_validate(lesson)
    await db.commit()

    if lesson.status == LessonStatus.SCHEDULED:
        await run_post_commit(db, create_lesson_reminder, lesson.id, student.tutor_id)
    return lesson_read
