from sqlalchemy.orm import Session
from typing import List

from examcore.crud.base import CRUDBase
from examcore.models.notification import Notification
from examcore.schemas.notification import NotificationCreate

class CRUDNotification(CRUDBase[Notification, NotificationCreate, NotificationCreate]):
    def get_for_user(self, db: Session, *, user_id: int, skip: int = 0, limit: int = 100) -> List[Notification]:
        return (
            db.query(self.model)
            .filter(self.model.user_id == user_id)
            .order_by(self.model.id.desc())
            .offset(skip)
            .limit(limit)
            .all()
        )

notification = CRUDNotification(Notification)
