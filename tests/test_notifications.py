"""Lesson/report side effects and the notification inbox."""

import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy import func, select

from app.api.v1.endpoints import lessons as lessons_endpoint
from app.core.enums import LessonStatus, NotificationType
from app.models import Lesson, Notification
from app.services.notifications import (
    create_lesson_reminder,
    create_report_ready_notification,
    run_post_commit,
)

LESSONS = "/api/v1/lessons"
REPORTS = "/api/v1/reports"
NOTIFICATIONS = "/api/v1/notifications"


def _future(days: int = 3) -> str:
    return (datetime.now(timezone.utc) + timedelta(days=days)).isoformat()


async def _count(session_maker, model) -> int:
    async with session_maker() as s:
        return (await s.execute(select(func.count(model.id)))).scalar_one()


# ── side effects ─────────────────────────────────────────────────────────

async def test_scheduling_a_lesson_creates_reminder(client, make_tutor, make_student, auth_headers):
    tutor = await make_tutor()
    student = await make_student(tutor, name="Choi")
    headers = auth_headers(tutor)

    response = await client.post(
        LESSONS, json={"date": _future(), "topic": "Fractions", "student_id": student.id}, headers=headers
    )
    assert response.status_code == 201
    lesson = response.json()
    assert lesson["status"] == "SCHEDULED"

    inbox = (await client.get(NOTIFICATIONS, headers=headers)).json()
    [reminder] = inbox
    assert reminder["type"] == "LESSON_REMINDER"
    assert reminder["lesson_id"] == lesson["id"]
    assert "Choi" in reminder["message"] and "Fractions" in reminder["message"]


async def test_completed_lesson_creates_no_reminder(client, make_tutor, make_student, auth_headers, session_maker):
    tutor = await make_tutor()
    student = await make_student(tutor)
    body = {"date": _future(), "topic": "Review", "student_id": student.id, "status": "COMPLETED"}

    response = await client.post(LESSONS, json=body, headers=auth_headers(tutor))

    assert response.status_code == 201
    assert await _count(session_maker, Notification) == 0


async def test_lesson_for_someone_elses_student_is_rejected(client, make_tutor, make_student, auth_headers):
    owner = await make_tutor(email="owner@example.com")
    intruder = await make_tutor(email="intruder@example.com")
    student = await make_student(owner)

    response = await client.post(
        LESSONS, json={"date": _future(), "topic": "X", "student_id": student.id}, headers=auth_headers(intruder)
    )
    assert response.status_code == 400


async def test_failed_reminder_is_logged_and_lesson_kept(
    client, make_tutor, make_student, auth_headers, session_maker, monkeypatch, caplog
):
    async def create_lesson_reminder(db, lesson_id, tutor_id):
        raise RuntimeError("notification store down")

    monkeypatch.setattr(lessons_endpoint, "create_lesson_reminder", create_lesson_reminder)
    tutor = await make_tutor()
    student = await make_student(tutor)

    with caplog.at_level(logging.ERROR, logger="app.services.notifications"):
        response = await client.post(
            LESSONS, json={"date": _future(), "topic": "Algebra", "student_id": student.id},
            headers=auth_headers(tutor),
        )

    assert response.status_code == 201
    assert await _count(session_maker, Lesson) == 1
    assert await _count(session_maker, Notification) == 0
    assert any("create_lesson_reminder" in r.getMessage() for r in caplog.records)


async def test_report_creates_ready_notification(client, db, make_tutor, make_student, auth_headers):
    tutor = await make_tutor()
    student = await make_student(tutor, name="Jung", subject="History")
    lesson = Lesson(date=datetime.now(timezone.utc), topic="WWII", student_id=student.id,
                    status=LessonStatus.COMPLETED)
    db.add(lesson)
    await db.commit()
    headers = auth_headers(tutor)

    response = await client.post(REPORTS, json={"content": "Good progress", "lesson_id": lesson.id}, headers=headers)
    assert response.status_code == 201
    report_id = response.json()["id"]

    [note] = (await client.get(NOTIFICATIONS, headers=headers)).json()
    assert note["type"] == "REPORT_READY"
    assert note["report_id"] == report_id
    assert "Jung" in note["message"] and "History" in note["message"]


async def test_second_report_for_same_lesson_is_rejected(client, db, make_tutor, make_student, auth_headers):
    tutor = await make_tutor()
    student = await make_student(tutor)
    lesson = Lesson(date=datetime.now(timezone.utc), topic="T", student_id=student.id)
    db.add(lesson)
    await db.commit()
    headers = auth_headers(tutor)

    first = await client.post(REPORTS, json={"content": "one", "lesson_id": lesson.id}, headers=headers)
    second = await client.post(REPORTS, json={"content": "two", "lesson_id": lesson.id}, headers=headers)

    assert first.status_code == 201
    assert second.status_code == 400


async def test_run_post_commit_missing_target_returns_none(db, make_tutor, caplog):
    # The first rollback expires the tutor instance
    tutor_id = (await make_tutor()).id
    with caplog.at_level(logging.ERROR, logger="app.services.notifications"):
        assert await run_post_commit(db, create_lesson_reminder, 12345, tutor_id) is None
        assert await run_post_commit(db, create_report_ready_notification, 12345, tutor_id) is None
    failures = [r for r in caplog.records if r.name == "app.services.notifications"]
    assert len(failures) == 2


# ── inbox ────────────────────────────────────────────────────────────────

async def test_reminders_for_past_lessons_are_hidden(
    client, db, session_maker, make_tutor, make_student, auth_headers
):
    tutor = await make_tutor()
    student = await make_student(tutor)
    past = Lesson(date=datetime.now(timezone.utc) - timedelta(days=1), topic="Old", student_id=student.id)
    upcoming = Lesson(date=datetime.now(timezone.utc) + timedelta(days=1), topic="New", student_id=student.id)
    db.add_all([past, upcoming])
    await db.commit()
    async with session_maker() as s:
        await create_lesson_reminder(s, past.id, tutor.id)
        await create_lesson_reminder(s, upcoming.id, tutor.id)
        await s.commit()

    inbox = (await client.get(NOTIFICATIONS, headers=auth_headers(tutor))).json()

    assert [n["lesson_id"] for n in inbox] == [upcoming.id]


async def test_filters_and_mark_read(client, make_tutor, auth_headers):
    tutor = await make_tutor()
    headers = auth_headers(tutor)
    for title in ("first", "second"):
        created = await client.post(
            NOTIFICATIONS, json={"type": "REPORT_READY", "title": title, "message": "m"}, headers=headers
        )
        assert created.status_code == 201

    inbox = (await client.get(NOTIFICATIONS, headers=headers)).json()
    assert [n["title"] for n in inbox] == ["second", "first"]

    read = await client.patch(f"{NOTIFICATIONS}/{inbox[0]['id']}/read", headers=headers)
    assert read.status_code == 200
    assert read.json()["is_read"] is True

    unread = (await client.get(NOTIFICATIONS, params={"is_read": "false"}, headers=headers)).json()
    assert [n["title"] for n in unread] == ["first"]
    reminders = (await client.get(NOTIFICATIONS, params={"type": "LESSON_REMINDER"}, headers=headers)).json()
    assert reminders == []


async def test_read_all_and_delete(client, make_tutor, auth_headers, session_maker):
    tutor = await make_tutor()
    headers = auth_headers(tutor)
    ids = []
    for title in ("a", "b", "c"):
        r = await client.post(NOTIFICATIONS, json={"type": "REPORT_READY", "title": title, "message": "m"},
                              headers=headers)
        ids.append(r.json()["id"])

    marked = await client.patch(f"{NOTIFICATIONS}/read-all", headers=headers)
    assert marked.status_code == 200
    assert marked.json() == {"updated": 3}

    deleted = await client.delete(f"{NOTIFICATIONS}/{ids[0]}", headers=headers)
    assert deleted.status_code == 204
    assert await _count(session_maker, Notification) == 2


async def test_other_tutors_notifications_are_invisible(client, make_tutor, auth_headers):
    owner = await make_tutor(email="owner@example.com")
    other = await make_tutor(email="other@example.com")
    created = await client.post(
        NOTIFICATIONS, json={"type": "REPORT_READY", "title": "t", "message": "m"}, headers=auth_headers(owner)
    )
    note_id = created.json()["id"]

    assert (await client.get(NOTIFICATIONS, headers=auth_headers(other))).json() == []
    assert (await client.patch(f"{NOTIFICATIONS}/{note_id}/read", headers=auth_headers(other))).status_code == 404
    assert (await client.delete(f"{NOTIFICATIONS}/{note_id}", headers=auth_headers(other))).status_code == 404


async def test_create_notification_with_unknown_references(client, make_tutor, auth_headers):
    tutor = await make_tutor()
    headers = auth_headers(tutor)
    body = {"type": NotificationType.LESSON_REMINDER.value, "title": "t", "message": "m", "lesson_id": 404}
    assert (await client.post(NOTIFICATIONS, json=body, headers=headers)).status_code == 400
    body = {"type": "REPORT_READY", "title": "t", "message": "m", "report_id": 404}
    assert (await client.post(NOTIFICATIONS, json=body, headers=headers)).status_code == 400


async def test_inbox_requires_token(client):
    assert (await client.get(NOTIFICATIONS)).status_code == 401
    assert (await client.post(REPORTS, json={"content": "x", "lesson_id": 1})).status_code == 401
    assert (await client.post(LESSONS, json={"date": _future(), "topic": "x", "student_id": 1})).status_code == 401
