"""Tutor model - the authenticated account owner."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import DateTime, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base


class Tutor(Base):
    """A tutor account. `password` holds the bcrypt hash, never plaintext."""

    __tablename__ = "tutors"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    password: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    students: Mapped[list["Student"]] = relationship(
        "Student", back_populates="tutor", cascade="all, delete-orphan", order_by="Student.id"
    )
    notifications: Mapped[list["Notification"]] = relationship(
        "Notification", back_populates="tutor", cascade="all, delete-orphan"
    )
