"""ORM models - import all so Base.metadata is complete for create_all."""

from app.models.lesson import Lesson, Report
from app.models.notification import Notification
from app.models.student import Student
from app.models.tutor import Tutor

__all__ = [
    "Lesson",
    "Notification",
    "Report",
    "Student",
    "Tutor",
]
