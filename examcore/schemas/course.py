from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class CourseCreate(BaseModel):
    name: str
    code: Optional[str] = None
    semester: int = 1
    credits: Optional[int] = Field(default=None, gt=0)

class Course(BaseModel):
    id: int
    name: str
    code: Optional[str] = None
    semester: int
    credits: int

    model_config = ConfigDict(from_attributes=True)

class ExamSessionCreate(BaseModel):
    name: str
    academic_year: str
    semester: Optional[int] = None

class ExamSession(ExamSessionCreate):
    id: int

    model_config = ConfigDict(from_attributes=True)
