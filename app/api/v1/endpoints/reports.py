"""Post-lesson reports. Writing one notifies the tutor that it is ready."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import require_token
from app.core.exceptions import ValidationError
from app.core.tokens import TokenPayload
from app.db.session import get_db
from app.models.lesson import Lesson, Report
from app.models.student import Student
from app.schemas.lesson import ReportCreate, ReportRead
from app.services.notifications import create_report_ready_notification, run_post_commit

router = APIRouter()


@router.post("", response_model=ReportRead, status_code=201)
async def create_report(
    payload: ReportCreate,
    user: TokenPayload = Depends(require_token),
    db: AsyncSession = Depends(get_db),
):
    """Write the report for one of the caller's lessons (one report per lesson)."""
    result = await db.execute(
        select(Lesson)
        .join(Student, Lesson.student_id == Student.id)
        .where(Lesson.id == payload.lesson_id, Student.tutor_id == user.subject_id)
    )
    lesson = result.scalar_one_or_none()
    if not lesson:
        raise ValidationError("Lesson does not exist")

    existing = await db.execute(select(Report.id).where(Report.lesson_id == lesson.id))
    if existing.scalar_one_or_none() is not None:
        raise ValidationError("A report already exists for this lesson")

    report = Report(content=payload.content, lesson_id=lesson.id)
    db.add(report)
    await db.flush()
    await db.refresh(report)
    report_read = ReportRead.model_validate(report)
    await db.commit()

    await run_post_commit(db, create_report_ready_notification, report.id, user.subject_id)
    return report_read
