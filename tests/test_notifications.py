import asyncio

import pytest

from examcore.core.constants import EventTypeEnum
from examcore.services.notification import NotificationService
from examcore.utils.events import EventBus

PAYLOAD = {
    "attempt_id": 7,
    "student_id": 1001,
    "exam_title": "Final Exam",
    "score": 18.0,
    "max_score": 20.0,
    "percentage": 90.0,
}


@pytest.mark.asyncio
async def test_event_bus_passes_the_envelope_to_handlers():
    bus = EventBus()
    received = []

    async def on_graded(event):
        received.append(event)

    bus.subscribe(EventTypeEnum.EXAM_GRADED, on_graded)
    bus.subscribe(EventTypeEnum.EXAM_GRADED, on_graded)
    await bus.publish(EventTypeEnum.EXAM_GRADED, PAYLOAD)

    assert received == [{"type": "exam_graded", "payload": PAYLOAD}]


@pytest.mark.asyncio
async def test_sync_handlers_run_and_failures_do_not_reach_the_publisher():
    bus = EventBus()
    received = []

    def broken(event):
        raise RuntimeError("mail server down")

    def on_graded(event):
        received.append(event["payload"]["student_id"])

    bus.subscribe("exam_graded", broken)
    bus.subscribe("exam_graded", on_graded)
    await bus.publish(EventTypeEnum.EXAM_GRADED, PAYLOAD)

    assert received == [1001]


@pytest.mark.asyncio
async def test_unsubscribed_handler_is_not_called():
    bus = EventBus()
    calls = []

    async def on_graded(event):
        calls.append(event)

    bus.subscribe(EventTypeEnum.EXAM_GRADED, on_graded)
    bus.unsubscribe(EventTypeEnum.EXAM_GRADED, on_graded)
    await bus.publish(EventTypeEnum.EXAM_GRADED, PAYLOAD)
    await asyncio.sleep(0)

    assert calls == []
    assert bus.handlers_for(EventTypeEnum.EXAM_GRADED) == []


def test_exam_graded_handler_stores_a_notification(db_session, session_factory):
    service = NotificationService(session_factory=session_factory)
    service.handle_exam_graded({"type": "exam_graded", "payload": PAYLOAD})

    [notification] = service.get_user_notifications(db_session, user_id=1001)
    assert notification.notification_type == "exam_graded"
    assert notification.link == "/grading/attempts/7/result"
    assert "Final Exam" in notification.message
    assert "18/20" in notification.message
    assert notification.is_read is False


@pytest.mark.asyncio
async def test_finalize_publishes_exam_graded(db_session, session_factory, submitted_attempt):
    from examcore.schemas.answer import GradeOverride
    from examcore.services.finalization import finalization_service
    from examcore.services.grading import grading_service
    from examcore.utils.events import event_bus

    exam, attempt, questions = submitted_attempt()
    view = grading_service.get_grading_view(db_session, attempt.id)
    essay = [a for a in view.answers if a.grade is None][0]
    grading_service.record_grade(db_session, essay.id, GradeOverride(grade=8))

    received = []

    async def on_graded(event):
        received.append(event)

    event_bus.subscribe(EventTypeEnum.EXAM_GRADED, on_graded)
    try:
        await finalization_service.finalize_attempt(db_session, attempt.id)
    finally:
        event_bus.unsubscribe(EventTypeEnum.EXAM_GRADED, on_graded)

    [event] = received
    assert event["type"] == "exam_graded"
    assert event["payload"]["student_id"] == 1001
    assert event["payload"]["score"] == 18
