from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Float, Boolean
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from examcore.core.database import Base

class ExamResult(Base):
    __tablename__ = "exam_results"

    id = Column(Integer, primary_key=True, index=True)
    attempt_id = Column(Integer, ForeignKey("exam_attempts.id"), nullable=False, unique=True)
    student_id = Column(Integer, nullable=False, index=True)
    exam_id = Column(Integer, ForeignKey("exams.id"), nullable=False, index=True)
    score = Column(Float, nullable=True)
    max_score = Column(Float, nullable=False)
    passing_score = Column(Float, nullable=False)
    percentage = Column(Float, nullable=True)
    passed = Column(Boolean, nullable=False)
    letter_grade = Column(String, nullable=False)
    has_incidents = Column(Boolean, nullable=False, default=False)
    incident_count = Column(Integer, nullable=False, default=0)
    feedback = Column(String, nullable=True)
    graded_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    attempt = relationship("ExamAttempt", back_populates="result")
    exam = relationship("Exam")
