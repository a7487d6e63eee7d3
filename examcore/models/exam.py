from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Float, Enum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from examcore.core.database import Base
from examcore.core.constants import ExamStatusEnum

class Exam(Base):
    __tablename__ = "exams"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, index=True, nullable=False, default="")
    description = Column(String, nullable=True)
    course_id = Column(Integer, ForeignKey("courses.id"), nullable=True)
    session_id = Column(Integer, ForeignKey("exam_sessions.id"), nullable=True)
    center_id = Column(Integer, nullable=True)
    exam_type = Column(String, nullable=True)
    total_points = Column(Float, nullable=False, default=0)
    passing_grade = Column(Float, nullable=False, default=0)
    weight = Column(Float, nullable=False, default=1)
    status = Column(Enum(ExamStatusEnum), nullable=False, default=ExamStatusEnum.DRAFT)
    date = Column(DateTime(timezone=True), nullable=True)
    duration_minutes = Column(Integer, nullable=True)
    created_by = Column(Integer, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    course = relationship("Course", back_populates="exams")
    session = relationship("ExamSession", back_populates="exams")
    questions = relationship(
        "Question", back_populates="exam", cascade="all, delete-orphan", order_by="Question.number"
    )
    attempts = relationship("ExamAttempt", back_populates="exam", cascade="all, delete-orphan")

    @property
    def course_name(self):
        return self.course.name if self.course else None

    @property
    def academic_year(self):
        return self.session.academic_year if self.session else None
