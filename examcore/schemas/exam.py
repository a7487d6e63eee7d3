from pydantic import BaseModel, ConfigDict, Field, field_validator
from typing import Optional, Dict
from datetime import datetime

from examcore.core.constants import ExamStatusEnum


class ExamBase(BaseModel):
    title: str = ""
    description: Optional[str] = None
    course_id: Optional[int] = None
    session_id: Optional[int] = None
    center_id: Optional[int] = None
    exam_type: Optional[str] = None
    total_points: float = 0
    passing_grade: float = 0
    weight: float = Field(default=1, gt=0)
    date: Optional[datetime] = None
    duration_minutes: Optional[int] = None

    class Config:
        json_schema_extra = {
            "example": {
                "title": "Final Exam",
                "description": "End of semester assessment",
                "course_id": 1,
                "session_id": 1,
                "exam_type": "final",
                "total_points": 20,
                "passing_grade": 10,
                "weight": 2,
                "date": "2025-01-15T09:00:00Z",
                "duration_minutes": 120
            }
        }

class ExamCreate(ExamBase):
    created_by: Optional[int] = None

class ExamUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    course_id: Optional[int] = None
    session_id: Optional[int] = None
    center_id: Optional[int] = None
    exam_type: Optional[str] = None
    total_points: Optional[float] = None
    passing_grade: Optional[float] = None
    weight: Optional[float] = Field(default=None, gt=0)
    date: Optional[datetime] = None
    duration_minutes: Optional[int] = None

    @field_validator("title", "total_points", "passing_grade", "weight")
    @classmethod
    def reject_null(cls, value, info):
        if value is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return value

class Exam(ExamBase):
    id: int
    status: ExamStatusEnum
    created_by: Optional[int] = None
    course_name: Optional[str] = None
    academic_year: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

class PublishCheck(BaseModel):
    ok: bool
    errors: Dict[str, str] = {}
