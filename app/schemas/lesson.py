"""Lesson scheduling and report schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from app.core.enums import LessonStatus


class LessonCreate(BaseModel):
    date: datetime
    topic: str = Field(..., min_length=1, max_length=255)
    student_id: int
    status: LessonStatus = LessonStatus.SCHEDULED


class LessonRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    date: datetime
    topic: str
    status: LessonStatus
    student_id: int


class ReportCreate(BaseModel):
    content: str = Field(..., min_length=1)
    lesson_id: int


class ReportRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    content: str
    lesson_id: int
    created_at: datetime | None = None
