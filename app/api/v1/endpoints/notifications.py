"""Notification inbox for the authenticated tutor."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import desc, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.api.deps import require_token
from app.core.enums import NotificationType
from app.core.exceptions import ValidationError
from app.core.tokens import TokenPayload
from app.db.session import get_db
from app.models.lesson import Lesson, Report
from app.models.notification import Notification
from app.schemas.notification import NotificationCreate, NotificationRead
from app.services.notifications import is_stale_reminder

router = APIRouter()


async def _get_own_notification(db: AsyncSession, notification_id: int, tutor_id: int) -> Notification:
    result = await db.execute(
        select(Notification).where(
            Notification.id == notification_id, Notification.tutor_id == tutor_id
        )
    )
    notification = result.scalar_one_or_none()
    if not notification:
        raise HTTPException(status_code=404, detail="Notification not found")
    return notification


@router.get("", response_model=list[NotificationRead])
async def list_notifications(
    type: Optional[NotificationType] = Query(None, description="Only this notification type"),
    is_read: Optional[bool] = Query(None, description="Filter on read state"),
    user: TokenPayload = Depends(require_token),
    db: AsyncSession = Depends(get_db),
):
    """Newest first. Reminders for lessons that already started are left out."""
    stmt = (
        select(Notification)
        .options(selectinload(Notification.lesson))
        .where(Notification.tutor_id == user.subject_id)
        .order_by(desc(Notification.created_at), desc(Notification.id))
    )
    if type is not None:
        stmt = stmt.where(Notification.type == type)
    if is_read is not None:
        stmt = stmt.where(Notification.is_read == is_read)

    result = await db.execute(stmt)
    now = datetime.now(timezone.utc)
    return [n for n in result.scalars().all() if not is_stale_reminder(n, now)]


@router.post("", response_model=NotificationRead, status_code=201)
async def create_notification(
    payload: NotificationCreate,
    user: TokenPayload = Depends(require_token),
    db: AsyncSession = Depends(get_db),
):
    """Create a notification for the caller. Referenced lesson/report must exist."""
    if payload.lesson_id is not None:
        r = await db.execute(select(Lesson.id).where(Lesson.id == payload.lesson_id))
        if r.scalar_one_or_none() is None:
            raise ValidationError("Lesson does not exist")
    if payload.report_id is not None:
        r = await db.execute(select(Report.id).where(Report.id == payload.report_id))
        if r.scalar_one_or_none() is None:
            raise ValidationError("Report does not exist")

    notification = Notification(**payload.model_dump(), tutor_id=user.subject_id)
    db.add(notification)
    await db.flush()
    await db.refresh(notification)
    return notification


@router.patch("/read-all")
async def mark_all_read(
    user: TokenPayload = Depends(require_token),
    db: AsyncSession = Depends(get_db),
):
    """Mark every unread notification of the caller as read."""
    result = await db.execute(
        update(Notification)
        .where(Notification.tutor_id == user.subject_id, Notification.is_read.is_(False))
        .values(is_read=True)
    )
    return {"updated": result.rowcount}


@router.patch("/{notification_id}/read", response_model=NotificationRead)
async def mark_read(
    notification_id: int,
    user: TokenPayload = Depends(require_token),
    db: AsyncSession = Depends(get_db),
):
    notification = await _get_own_notification(db, notification_id, user.subject_id)
    notification.is_read = True
    await db.flush()
    await db.refresh(notification)
    return notification


@router.delete("/{notification_id}", status_code=204)
async def delete_notification(
    notification_id: int,
    user: TokenPayload = Depends(require_token),
    db: AsyncSession = Depends(get_db),
):
    notification = await _get_own_notification(db, notification_id, user.subject_id)
    await db.delete(notification)
    return None
