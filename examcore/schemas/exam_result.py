from pydantic import BaseModel, ConfigDict
from typing import Optional
from datetime import datetime


class ExamResultBase(BaseModel):
    attempt_id: int
    student_id: int
    exam_id: int
    score: float
    max_score: float
    passing_score: float
    percentage: float
    passed: bool
    letter_grade: str
    has_incidents: bool = False
    incident_count: int = 0
    feedback: Optional[str] = None

class ExamResultCreate(ExamResultBase):
    """Outcome of finalizing one attempt, before it is written."""
    pass

class ExamResult(ExamResultBase):
    id: int
    graded_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class StudentExamResult(BaseModel):
    """An exam result joined with the exam and course fields aggregation needs."""
    exam_id: int
    exam_title: Optional[str] = None
    course_id: Optional[int] = None
    exam_weight: float = 1
    semester: Optional[int] = None
    academic_year: Optional[str] = None
    score: Optional[float] = None
    max_score: float
    percentage: Optional[float] = None
    passed: Optional[bool] = None
    letter_grade: Optional[str] = None
    normalized_grade: Optional[float] = None # 0-20 scale

class ExamStatistics(BaseModel):
    """Class-wide figures over the finalized results of one exam."""
    exam_id: int
    exam_title: Optional[str] = None
    max_score: float
    result_count: int = 0
    passed_count: int = 0
    average: Optional[float] = None
    highest: Optional[float] = None
    lowest: Optional[float] = None
