from typing import List, Optional
from sqlalchemy.orm import Session

from examcore.crud.base import CRUDBase
from examcore.models.course import Course
from examcore.models.exam import Exam
from examcore.models.exam_result import ExamResult
from examcore.models.exam_session import ExamSession
from examcore.schemas.exam_result import ExamResultCreate, StudentExamResult


class CRUDExamResult(CRUDBase[ExamResult, ExamResultCreate, ExamResultCreate]):
    def get_by_attempt(self, db: Session, *, attempt_id: int) -> Optional[ExamResult]:
        return db.query(ExamResult).filter(ExamResult.attempt_id == attempt_id).first()

    def upsert(self, db: Session, *, obj_in: ExamResultCreate, graded_at=None) -> ExamResult:
        """Insert or replace the result of an attempt. Does not commit."""
        data = obj_in.model_dump()
        data["graded_at"] = graded_at
        db_obj = self.get_by_attempt(db, attempt_id=obj_in.attempt_id)
        if db_obj is None:
            db_obj = ExamResult(**data)
            db.add(db_obj)
        else:
            for field, value in data.items():
                setattr(db_obj, field, value)
        db.flush()
        return db_obj

    def get_by_exam(self, db: Session, *, exam_id: int) -> List[ExamResult]:
        return db.query(ExamResult).filter(ExamResult.exam_id == exam_id).order_by(ExamResult.id).all()

    def get_for_student(self, db: Session, *, student_id: int, academic_year: str) -> List[StudentExamResult]:
        rows = (
            db.query(ExamResult, Exam, Course, ExamSession)
            .join(Exam, ExamResult.exam_id == Exam.id)
            .outerjoin(Course, Exam.course_id == Course.id)
            .join(ExamSession, Exam.session_id == ExamSession.id)
            .filter(ExamResult.student_id == student_id)
            .filter(ExamSession.academic_year == academic_year)
            .order_by(Exam.date, ExamResult.id)
            .all()
        )
        return [
            StudentExamResult(
                exam_id=exam.id,
                exam_title=exam.title,
                course_id=exam.course_id,
                exam_weight=exam.weight if exam.weight is not None else 1,
                semester=course.semester if course else session.semester,
                academic_year=session.academic_year,
                score=result.score,
                max_score=result.max_score,
                percentage=result.percentage,
                passed=result.passed,
                letter_grade=result.letter_grade,
            )
            for result, exam, course, session in rows
        ]


exam_result = CRUDExamResult(ExamResult)
