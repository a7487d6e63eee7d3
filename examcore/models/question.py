from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Enum, Float, JSON, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from examcore.core.database import Base
from examcore.core.constants import QuestionTypeEnum

class Question(Base):
    __tablename__ = "questions"
    __table_args__ = (UniqueConstraint("exam_id", "number", name="uq_questions_exam_number"),)

    id = Column(Integer, primary_key=True, index=True)
    exam_id = Column(Integer, ForeignKey("exams.id"), nullable=False, index=True)
    number = Column(Integer, nullable=False) # 1..N within the exam
    question_text = Column(String, nullable=False, default="")
    question_type = Column(Enum(QuestionTypeEnum), nullable=False)
    options = Column(JSON, nullable=True) # [{"id": "a", "text": "..."}] for multiple choice
    correct_answer = Column(String, nullable=True) # id of the correct option
    points = Column(Float, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    exam = relationship("Exam", back_populates="questions")
    answers = relationship("Answer", back_populates="question", cascade="all, delete-orphan")
