"""Shared enums for models and API."""

from enum import Enum


class LessonStatus(str, Enum):
    """Lifecycle of a lesson."""

    SCHEDULED = "SCHEDULED"
    COMPLETED = "COMPLETED"
    CANCELED = "CANCELED"


class NotificationType(str, Enum):
    """What a notification is about."""

    LESSON_REMINDER = "LESSON_REMINDER"  # Lesson scheduled
    REPORT_READY = "REPORT_READY"  # Report written
