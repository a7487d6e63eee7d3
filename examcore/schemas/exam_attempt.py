from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List
from datetime import datetime

from examcore.core.constants import AttemptStatusEnum
from examcore.schemas.answer import Answer


class ExamAttemptCreate(BaseModel):
    student_id: int

class IncidentCreate(BaseModel):
    count: int = Field(default=1, ge=1)

class ExamAttempt(BaseModel):
    id: int
    student_id: int
    exam_id: int
    status: AttemptStatusEnum
    started_at: Optional[datetime] = None
    submitted_at: Optional[datetime] = None
    has_incidents: bool = False
    incident_count: int = 0
    grading_progress: float = 0
    graded: bool = False
    score: Optional[float] = None
    max_score: Optional[float] = None
    percentage: Optional[float] = None
    letter_grade: Optional[str] = None
    passed: Optional[bool] = None
    feedback: Optional[str] = None
    version: int = 1

    model_config = ConfigDict(from_attributes=True)

class AttemptGradingView(BaseModel):
    attempt: ExamAttempt
    answers: List[Answer] = []
    progress: float = 0

class FinalizeRequest(BaseModel):
    feedback: Optional[str] = None
    expected_version: Optional[int] = None
