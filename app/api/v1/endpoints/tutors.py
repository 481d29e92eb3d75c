"""Tutor endpoints - registration, login, profile, dashboard stats, password change."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.api.deps import require_token
from app.core.constants import PROFILE_RECENT_LESSONS
from app.core.exceptions import AuthenticationFailure, ValidationError
from app.core.security import CredentialManager, get_credential_manager
from app.core.tokens import TokenPayload, TokenService, get_token_service
from app.db.session import get_db
from app.models.student import Student
from app.models.tutor import Tutor
from app.schemas.tutor import (
    LessonSummary,
    LoginResponse,
    PasswordChange,
    ProfileStudent,
    TutorCreate,
    TutorLogin,
    TutorProfile,
    TutorRead,
    TutorStats,
    TutorWithStudents,
)
from app.services.tutor_stats import compute_tutor_stats

logger = logging.getLogger(__name__)
router = APIRouter()

# Same message for unknown email and wrong password
BAD_CREDENTIALS = "Invalid email or password"


@router.post("/register", response_model=TutorRead, status_code=201)
async def register(
    payload: TutorCreate,
    db: AsyncSession = Depends(get_db),
    credentials: CredentialManager = Depends(get_credential_manager),
):
    """Create a tutor account. The password is checked against policy, then hashed."""
    check = credentials.validate(payload.password)
    if not check.is_valid:
        raise ValidationError(check.message)

    result = await db.execute(select(Tutor.id).where(Tutor.email == payload.email))
    if result.scalar_one_or_none() is not None:
        raise ValidationError("Email already registered")

    tutor = Tutor(
        name=payload.name,
        email=payload.email,
        password=await credentials.hash(payload.password),
    )
    db.add(tutor)
    await db.flush()
    await db.refresh(tutor)
    logger.info("Registered tutor %s", tutor.id)
    return tutor


@router.post("/login", response_model=LoginResponse)
async def login(
    payload: TutorLogin,
    db: AsyncSession = Depends(get_db),
    credentials: CredentialManager = Depends(get_credential_manager),
    tokens: TokenService = Depends(get_token_service),
):
    """Exchange email + password for a bearer token."""
    result = await db.execute(select(Tutor).where(Tutor.email == payload.email))
    tutor = result.scalar_one_or_none()
    if tutor is None or not await credentials.compare(payload.password, tutor.password):
        raise AuthenticationFailure(BAD_CREDENTIALS)

    token = tokens.issue(TokenPayload(subject_id=tutor.id, email=tutor.email))
    return LoginResponse(tutor=TutorRead.model_validate(tutor), token=token)


@router.get("/profile", response_model=TutorProfile)
async def get_profile(
    user: TokenPayload = Depends(require_token),
    db: AsyncSession = Depends(get_db),
):
    """The caller's profile: students, each with their most recent lessons."""
    result = await db.execute(
        select(Tutor)
        .options(selectinload(Tutor.students).selectinload(Student.lessons))
        .where(Tutor.id == user.subject_id)
    )
    tutor = result.scalar_one_or_none()
    if not tutor:
        raise HTTPException(status_code=404, detail="Tutor not found")

    students = []
    for s in tutor.students:
        recent = sorted(s.lessons, key=lambda lesson: lesson.date, reverse=True)[:PROFILE_RECENT_LESSONS]
        students.append(
            ProfileStudent(
                id=s.id,
                name=s.name,
                subject=s.subject,
                contact=s.contact,
                memo=s.memo,
                lessons=[LessonSummary.model_validate(lesson) for lesson in recent],
            )
        )
    return TutorProfile(id=tutor.id, name=tutor.name, email=tutor.email, students=students)


@router.get("/stats", response_model=TutorStats)
async def get_stats(
    user: TokenPayload = Depends(require_token),
    db: AsyncSession = Depends(get_db),
):
    """Dashboard counters for the caller."""
    return await compute_tutor_stats(db, user.subject_id, datetime.now(timezone.utc))


@router.get("", response_model=list[TutorWithStudents])
async def list_tutors(db: AsyncSession = Depends(get_db)):
    """All tutors with a short list of their students."""
    result = await db.execute(
        select(Tutor).options(selectinload(Tutor.students)).order_by(Tutor.id)
    )
    return list(result.scalars().all())


@router.patch("/{tutor_id}/change-password")
async def change_password(
    tutor_id: int,
    payload: PasswordChange,
    user: TokenPayload = Depends(require_token),
    db: AsyncSession = Depends(get_db),
    credentials: CredentialManager = Depends(get_credential_manager),
):
    """Replace the stored hash. Requires the current password; tutors may only change their own."""
    if user.subject_id != tutor_id:
        raise HTTPException(status_code=403, detail="Cannot change another tutor's password")

    result = await db.execute(select(Tutor).where(Tutor.id == tutor_id))
    tutor = result.scalar_one_or_none()
    if not tutor:
        raise HTTPException(status_code=404, detail="Tutor not found")

    if not await credentials.compare(payload.current_password, tutor.password):
        raise ValidationError("Current password is incorrect")

    check = credentials.validate(payload.new_password)
    if not check.is_valid:
        raise ValidationError(check.message)

    tutor.password = await credentials.hash(payload.new_password)
    await db.flush()
    logger.info("Password changed for tutor %s", tutor.id)
    return {"message": "Password changed"}
