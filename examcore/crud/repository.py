import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Iterator, List, Optional

from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from examcore.core.exceptions import ConcurrencyConflictError, NotFoundError
from examcore.crud.answer import answer as crud_answer
from examcore.crud.course import course as crud_course
from examcore.crud.exam import exam as crud_exam
from examcore.crud.exam_attempt import exam_attempt as crud_exam_attempt
from examcore.crud.exam_result import exam_result as crud_exam_result
from examcore.crud.question import question as crud_question
from examcore.models.answer import Answer
from examcore.models.course import Course
from examcore.models.exam import Exam
from examcore.models.exam_attempt import ExamAttempt
from examcore.models.exam_result import ExamResult
from examcore.models.question import Question
from examcore.schemas.exam_result import ExamResultCreate, StudentExamResult

logger = logging.getLogger(__name__)


class AssessmentRepository:
    """Persistence collaborator of the grading engine, bound to one session.

    Reads raise NotFoundError for missing rows. Writes only flush; callers group
    them with `transaction()` so a failure leaves every row in its prior state.
    """

    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def transaction(self, entity: str = "Record", entity_id: Any = None) -> Iterator["AssessmentRepository"]:
        try:
            yield self
            self.db.commit()
        except StaleDataError as exc:
            self.db.rollback()
            logger.warning(f"Concurrent update detected on {entity} {entity_id}: {exc}")
            raise ConcurrencyConflictError(entity, entity_id) from exc
        except Exception:
            self.db.rollback()
            raise

    @staticmethod
    def check_version(entity: str, db_obj: Any, expected_version: Optional[int]) -> None:
        if expected_version is not None and db_obj.version != expected_version:
            raise ConcurrencyConflictError(entity, db_obj.id, expected_version, db_obj.version)

    def get_exam(self, exam_id: int) -> Exam:
        exam = crud_exam.get(self.db, id=exam_id)
        if not exam:
            raise NotFoundError("Exam", exam_id)
        return exam

    def get_question(self, question_id: int) -> Question:
        question = crud_question.get(self.db, id=question_id)
        if not question:
            raise NotFoundError("Question", question_id)
        return question

    def list_questions(self, exam_id: int) -> List[Question]:
        return crud_question.get_by_exam(self.db, exam_id=exam_id)

    def list_attempts(self, exam_id: int) -> List[ExamAttempt]:
        return crud_exam_attempt.get_all_by_exam(self.db, exam_id=exam_id)

    def count_attempts(self, exam_id: int) -> int:
        return crud_exam_attempt.count_by_exam(self.db, exam_id=exam_id)

    def get_attempt(self, attempt_id: int) -> ExamAttempt:
        attempt = crud_exam_attempt.get(self.db, id=attempt_id)
        if not attempt:
            raise NotFoundError("Exam attempt", attempt_id)
        return attempt

    def get_answer(self, answer_id: int) -> Answer:
        answer = crud_answer.get(self.db, id=answer_id)
        if not answer:
            raise NotFoundError("Answer", answer_id)
        return answer

    def list_answers(self, attempt_id: int) -> List[Answer]:
        return crud_answer.get_all_by_attempt(self.db, attempt_id=attempt_id)

    def write_answer_grade(self, answer_id: int, grade: float, feedback: Optional[str], is_correct: Optional[bool],
                           graded_manually: bool = True, expected_version: Optional[int] = None) -> Answer:
        answer = self.get_answer(answer_id)
        self.check_version("Answer", answer, expected_version)
        answer.grade = grade
        answer.is_correct = is_correct
        answer.graded_manually = graded_manually
        if feedback is not None:
            answer.feedback = feedback
        self.db.add(answer)
        self.db.flush()
        return answer

    def write_grading_progress(self, attempt: ExamAttempt, progress: float) -> ExamAttempt:
        attempt.grading_progress = progress
        self.db.add(attempt)
        self.db.flush()
        return attempt

    def finalize_attempt(self, attempt_id: int, result: ExamResultCreate,
                         expected_version: Optional[int] = None) -> ExamResult:
        """Write the result and the attempt score fields in a single commit."""
        with self.transaction("Exam attempt", attempt_id):
            attempt = self.get_attempt(attempt_id)
            self.check_version("Exam attempt", attempt, expected_version)
            graded_at = datetime.now(timezone.utc)
            db_result = crud_exam_result.upsert(self.db, obj_in=result, graded_at=graded_at)
            attempt.graded = True
            attempt.score = result.score
            attempt.max_score = result.max_score
            attempt.percentage = result.percentage
            attempt.letter_grade = result.letter_grade
            attempt.passed = result.passed
            attempt.feedback = result.feedback
            attempt.grading_progress = 100.0
            self.db.add(attempt)
            self.db.flush()
        self.db.refresh(db_result)
        return db_result

    def get_result(self, attempt_id: int) -> ExamResult:
        result = crud_exam_result.get_by_attempt(self.db, attempt_id=attempt_id)
        if not result:
            raise NotFoundError("Exam result", attempt_id)
        return result

    def list_exam_results_for_student(self, student_id: int, academic_year: str) -> List[StudentExamResult]:
        return crud_exam_result.get_for_student(self.db, student_id=student_id, academic_year=academic_year)

    def list_exam_results(self, exam_id: int) -> List[ExamResult]:
        return crud_exam_result.get_by_exam(self.db, exam_id=exam_id)

    def list_courses(self, course_ids: List[int]) -> List[Course]:
        return crud_course.get_by_ids(self.db, course_ids=course_ids)
