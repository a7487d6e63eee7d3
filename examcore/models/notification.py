from sqlalchemy import Column, Integer, String, Boolean, DateTime
from sqlalchemy.sql import func
from examcore.core.database import Base

class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, nullable=False, index=True)
    message = Column(String, nullable=False)
    is_read = Column(Boolean, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    link = Column(String, nullable=True) # Optional link to related resource
    notification_type = Column(String, nullable=True) # e.g., 'exam_graded'
