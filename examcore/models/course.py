from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from examcore.core.database import Base
from examcore.core.config import settings

class Course(Base):
    __tablename__ = "courses"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    code = Column(String, nullable=True, index=True)
    semester = Column(Integer, nullable=False, default=1)
    credits = Column(Integer, nullable=False, default=settings.DEFAULT_COURSE_CREDITS)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    exams = relationship("Exam", back_populates="course")
