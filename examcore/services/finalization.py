import logging
from typing import Any, Dict, Optional, Sequence

from sqlalchemy.orm import Session

from examcore.core.constants import EventTypeEnum, ExamStatusEnum, FINALIZABLE_EXAM_STATUSES
from examcore.core.exceptions import ValidationError
from examcore.crud.repository import AssessmentRepository
from examcore.models.exam_result import ExamResult
from examcore.schemas.exam_result import ExamResultCreate
from examcore.services.grading import grading_service
from examcore.utils.events import event_bus
from examcore.utils.grade_scale import is_passing, letter_grade, percentage_of

logger = logging.getLogger(__name__)


class FinalizationService:
    """Turns a fully graded attempt into its ExamResult.

    Pass rule: ``passing_grade`` is an absolute number of points compared with
    the total score. The percentage only drives the letter grade and display.
    """

    def finalize(self, exam, attempt, answers: Sequence, questions: Optional[Sequence] = None,
                 feedback: Optional[str] = None) -> ExamResultCreate:
        if attempt.exam_id != exam.id:
            raise ValidationError.single("attempt", "Attempt does not belong to this exam.")
        status = ExamStatusEnum(exam.status)
        if status not in FINALIZABLE_EXAM_STATUSES:
            raise ValidationError.single("status", f"Results cannot be finalized while the exam is '{status.value}'.")
        if not exam.total_points or exam.total_points <= 0:
            raise ValidationError.single("total_points", "Total points must be greater than 0.")

        answers = [a for a in answers if a.attempt_id == attempt.id]
        grading_service.ensure_fully_graded(answers, questions)

        total_score = float(sum(a.grade for a in answers))
        percentage = percentage_of(total_score, exam.total_points)
        return ExamResultCreate(
            attempt_id=attempt.id,
            student_id=attempt.student_id,
            exam_id=exam.id,
            score=total_score,
            max_score=float(exam.total_points),
            passing_score=float(exam.passing_grade),
            percentage=percentage,
            passed=is_passing(total_score, exam.passing_grade),
            letter_grade=letter_grade(percentage),
            has_incidents=bool(attempt.has_incidents),
            incident_count=attempt.incident_count or 0,
            feedback=feedback if feedback is not None else attempt.feedback,
        )

    def exam_graded_payload(self, exam, result) -> Dict[str, Any]:
        return {
            "attempt_id": result.attempt_id,
            "student_id": result.student_id,
            "exam_title": exam.title,
            "score": result.score,
            "max_score": result.max_score,
            "percentage": result.percentage,
        }

    async def finalize_attempt(self, db: Session, attempt_id: int, feedback: Optional[str] = None,
                               expected_version: Optional[int] = None) -> ExamResult:
        repo = AssessmentRepository(db)
        attempt = repo.get_attempt(attempt_id)
        exam = repo.get_exam(attempt.exam_id)
        result = self.finalize(
            exam, attempt, repo.list_answers(attempt_id), repo.list_questions(exam.id), feedback=feedback
        )

        db_result = repo.finalize_attempt(attempt_id, result, expected_version=expected_version)
        logger.info(
            f"Attempt {attempt_id} finalized: {result.score:g}/{result.max_score:g} "
            f"({result.percentage:.2f}%, {result.letter_grade}, passed={result.passed})"
        )

        await event_bus.publish(EventTypeEnum.EXAM_GRADED, self.exam_graded_payload(exam, result))
        return db_result

    def get_result(self, db: Session, attempt_id: int) -> ExamResult:
        return AssessmentRepository(db).get_result(attempt_id)


finalization_service = FinalizationService()
