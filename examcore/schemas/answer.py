from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime


class AnswerSubmit(BaseModel):
    raw_value: Optional[str] = None # option id or free text

class GradeOverride(BaseModel):
    """Staff-supplied judgment; replaces the automatic result for objective questions."""
    grade: Optional[float] = Field(default=None, ge=0)
    is_correct: Optional[bool] = None
    feedback: Optional[str] = None
    expected_version: Optional[int] = None

class GradeJudgment(BaseModel):
    is_correct: Optional[bool] = None
    grade: float
    graded_manually: bool = False

class Answer(BaseModel):
    id: int
    attempt_id: int
    question_id: int
    question_number: Optional[int] = None
    raw_value: Optional[str] = None
    is_correct: Optional[bool] = None
    grade: Optional[float] = None
    feedback: Optional[str] = None
    graded_manually: bool = False
    version: int = 1
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class GradedAnswer(BaseModel):
    answer: Answer
    progress: float
