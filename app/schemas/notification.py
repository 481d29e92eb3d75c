"""Notification schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from app.core.enums import NotificationType


class NotificationCreate(BaseModel):
    type: NotificationType
    title: str = Field(..., min_length=1, max_length=255)
    message: str = Field(..., min_length=1)
    lesson_id: int | None = None
    report_id: int | None = None


class NotificationRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    type: NotificationType
    title: str
    message: str
    is_read: bool
    tutor_id: int
    lesson_id: int | None = None
    report_id: int | None = None
    created_at: datetime
