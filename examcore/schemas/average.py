from pydantic import BaseModel
from typing import Optional, List

from examcore.core.constants import AverageStatusEnum
from examcore.schemas.exam_result import StudentExamResult


class CourseAverage(BaseModel):
    course_id: int
    course_name: Optional[str] = None
    course_code: Optional[str] = None
    average: Optional[float] = None # 0-20 scale
    semester: int
    status: AverageStatusEnum
    credits: int
    exam_count: int = 0

class SemesterAverage(BaseModel):
    semester: int
    average: Optional[float] = None
    validated_credits: int
    total_credits: int
    status: AverageStatusEnum

class StudentAverages(BaseModel):
    student_id: int
    academic_year: str
    courses: List[CourseAverage] = []
    semesters: List[SemesterAverage] = []
    results: List[StudentExamResult] = []
