from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Float, Boolean, Enum, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from examcore.core.database import Base
from examcore.core.constants import AttemptStatusEnum

class ExamAttempt(Base):
    __tablename__ = "exam_attempts"
    __table_args__ = (UniqueConstraint("exam_id", "student_id", name="uq_exam_attempts_exam_student"),)

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(Integer, nullable=False, index=True)
    exam_id = Column(Integer, ForeignKey("exams.id"), nullable=False, index=True)
    status = Column(Enum(AttemptStatusEnum), nullable=False, default=AttemptStatusEnum.NOT_STARTED)
    started_at = Column(DateTime(timezone=True), nullable=True)
    submitted_at = Column(DateTime(timezone=True), nullable=True)
    has_incidents = Column(Boolean, nullable=False, default=False)
    incident_count = Column(Integer, nullable=False, default=0)
    grading_progress = Column(Float, nullable=False, default=0)
    graded = Column(Boolean, nullable=False, default=False)
    score = Column(Float, nullable=True)
    max_score = Column(Float, nullable=True)
    percentage = Column(Float, nullable=True)
    letter_grade = Column(String, nullable=True)
    passed = Column(Boolean, nullable=True)
    feedback = Column(String, nullable=True)
    version = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    exam = relationship("Exam", back_populates="attempts")
    answers = relationship("Answer", back_populates="attempt", cascade="all, delete-orphan")
    result = relationship("ExamResult", back_populates="attempt", uselist=False, cascade="all, delete-orphan")

    __mapper_args__ = {"version_id_col": version}
