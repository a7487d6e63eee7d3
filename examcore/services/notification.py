import logging
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.orm import Session

from examcore.core.constants import EventTypeEnum
from examcore.core.database import SessionLocal
from examcore.crud.notification import notification as crud_notification
from examcore.models.notification import Notification
from examcore.schemas.notification import NotificationCreate
from examcore.utils.events import EventBus, event_bus

logger = logging.getLogger(__name__)


class NotificationService:
    """Stores in-app notifications; delivering them is left to an external consumer."""

    def __init__(self, session_factory: Callable[[], Session] = SessionLocal):
        self.session_factory = session_factory

    def create_notification(self, db: Session, *, user_id: int, message: str, link: Optional[str] = None,
                            notification_type: Optional[str] = None) -> Notification:
        notification_in = NotificationCreate(
            user_id=user_id, message=message, link=link, notification_type=notification_type
        )
        return crud_notification.create(db, obj_in=notification_in)

    def get_user_notifications(self, db: Session, *, user_id: int, skip: int = 0, limit: int = 100) -> List[Notification]:
        return crud_notification.get_for_user(db, user_id=user_id, skip=skip, limit=limit)

    def exam_graded_message(self, payload: Dict[str, Any]) -> str:
        return (
            f"Your exam '{payload['exam_title']}' has been graded: "
            f"{payload['score']:g}/{payload['max_score']:g} ({payload['percentage']:.1f}%)."
        )

    def handle_exam_graded(self, event: Dict[str, Any]) -> None:
        payload = event["payload"]
        db = self.session_factory()
        try:
            self.create_notification(
                db,
                user_id=payload["student_id"],
                message=self.exam_graded_message(payload),
                link=f"/grading/attempts/{payload['attempt_id']}/result",
                notification_type=EventTypeEnum.EXAM_GRADED.value,
            )
            logger.info(f"Exam graded notification stored for student {payload['student_id']}")
        finally:
            db.close()

    def register_handlers(self, bus: EventBus = event_bus) -> None:
        bus.subscribe(EventTypeEnum.EXAM_GRADED, self.handle_exam_graded)

    def unregister_handlers(self, bus: EventBus = event_bus) -> None:
        bus.unsubscribe(EventTypeEnum.EXAM_GRADED, self.handle_exam_graded)


notification_service = NotificationService()
