"""Tutor, auth and dashboard schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from app.core.enums import LessonStatus


# ── Auth ─────────────────────────────────────────────────────────────────

class TutorCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    # Policy (length, character classes) is enforced by the credential manager
    password: str


class TutorLogin(BaseModel):
    email: EmailStr
    password: str


class PasswordChange(BaseModel):
    current_password: str
    new_password: str


class TutorRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    created_at: datetime | None = None


class LoginResponse(BaseModel):
    tutor: TutorRead
    token: str


# ── Profile / listing ────────────────────────────────────────────────────

class LessonSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    date: datetime
    topic: str
    status: LessonStatus


class StudentSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    subject: str


class ProfileStudent(StudentSummary):
    contact: str | None = None
    memo: str | None = None
    lessons: list[LessonSummary] = []


class TutorProfile(BaseModel):
    id: int
    name: str
    email: str
    students: list[ProfileStudent] = []


class TutorWithStudents(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    students: list[StudentSummary] = []


# ── Dashboard ────────────────────────────────────────────────────────────

class TutorStats(BaseModel):
    total_students: int
    new_students_this_month: int
    completed_lessons_this_week: int
    scheduled_lessons_this_week: int
    total_lessons_this_week: int
    completion_rate_this_month: int
    completion_rate_change: int
    completed_lessons_this_month: int
    total_lessons_this_month: int
    completed_lessons_last_month: int
    total_lessons_last_month: int
