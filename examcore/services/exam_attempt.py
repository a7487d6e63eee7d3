import logging
from datetime import datetime, timezone
from typing import Dict, FrozenSet, List, Optional

from sqlalchemy.orm import Session

from examcore.core.constants import AttemptStatusEnum, ExamStatusEnum, QuestionTypeEnum
from examcore.core.exceptions import NotFoundError, ValidationError
from examcore.crud.answer import answer as crud_answer
from examcore.crud.exam_attempt import exam_attempt as crud_exam_attempt
from examcore.crud.repository import AssessmentRepository
from examcore.models.answer import Answer
from examcore.models.exam_attempt import ExamAttempt
from examcore.services.grading import grading_service

logger = logging.getLogger(__name__)

ATTEMPT_TRANSITIONS: Dict[AttemptStatusEnum, FrozenSet[AttemptStatusEnum]] = {
    AttemptStatusEnum.NOT_STARTED: frozenset({AttemptStatusEnum.IN_PROGRESS}),
    AttemptStatusEnum.IN_PROGRESS: frozenset({AttemptStatusEnum.SUBMITTED}),
    AttemptStatusEnum.SUBMITTED: frozenset(),
}

# Students can be assigned until the sitting is over
ASSIGNABLE_EXAM_STATUSES = frozenset({
    ExamStatusEnum.DRAFT,
    ExamStatusEnum.PUBLISHED,
    ExamStatusEnum.IN_PROGRESS,
})


class ExamAttemptService:

    def _ensure_attempt_transition(self, attempt: ExamAttempt, target: AttemptStatusEnum) -> None:
        current = AttemptStatusEnum(attempt.status)
        if target not in ATTEMPT_TRANSITIONS[current]:
            raise ValidationError.single(
                "attempt", f"Cannot move attempt from '{current.value}' to '{target.value}'."
            )

    def _ensure_exam_running(self, exam) -> None:
        if ExamStatusEnum(exam.status) != ExamStatusEnum.IN_PROGRESS:
            raise ValidationError.single("status", "The exam is not in progress.")

    def assign_student(self, db: Session, exam_id: int, student_id: int) -> ExamAttempt:
        repo = AssessmentRepository(db)
        exam = repo.get_exam(exam_id)
        if ExamStatusEnum(exam.status) not in ASSIGNABLE_EXAM_STATUSES:
            raise ValidationError.single("status", "Students can no longer be assigned to this exam.")
        if crud_exam_attempt.get_by_exam_and_student(db, exam_id=exam_id, student_id=student_id):
            raise ValidationError.single("student_id", "This student is already assigned to the exam.")

        with repo.transaction("Exam", exam_id):
            attempt = crud_exam_attempt.create(
                db, obj_in={"exam_id": exam_id, "student_id": student_id, "status": AttemptStatusEnum.NOT_STARTED},
                commit=False
            )
            crud_answer.create_blank_rows(
                db, attempt_id=attempt.id, question_ids=[q.id for q in repo.list_questions(exam_id)]
            )
        logger.info(f"Student {student_id} assigned to exam {exam_id} (attempt {attempt.id})")
        return repo.get_attempt(attempt.id)

    def get_attempt(self, db: Session, attempt_id: int) -> ExamAttempt:
        return AssessmentRepository(db).get_attempt(attempt_id)

    def get_exam_attempts(self, db: Session, exam_id: int) -> List[ExamAttempt]:
        repo = AssessmentRepository(db)
        repo.get_exam(exam_id)
        return repo.list_attempts(exam_id)

    def start_attempt(self, db: Session, attempt_id: int) -> ExamAttempt:
        repo = AssessmentRepository(db)
        attempt = repo.get_attempt(attempt_id)
        self._ensure_exam_running(attempt.exam)
        self._ensure_attempt_transition(attempt, AttemptStatusEnum.IN_PROGRESS)
        with repo.transaction("Exam attempt", attempt_id):
            # Questions added after assignment still get their row
            crud_answer.create_blank_rows(
                db, attempt_id=attempt.id, question_ids=[q.id for q in repo.list_questions(attempt.exam_id)]
            )
            attempt.status = AttemptStatusEnum.IN_PROGRESS
            attempt.started_at = datetime.now(timezone.utc)
            db.add(attempt)
        return repo.get_attempt(attempt_id)

    def submit_answer(self, db: Session, attempt_id: int, question_id: int, raw_value: Optional[str]) -> Answer:
        repo = AssessmentRepository(db)
        attempt = repo.get_attempt(attempt_id)
        self._ensure_exam_running(attempt.exam)
        if AttemptStatusEnum(attempt.status) != AttemptStatusEnum.IN_PROGRESS:
            raise ValidationError.single("attempt", "Answers can only be changed while the attempt is in progress.")

        answer = crud_answer.get_by_attempt_and_question(db, attempt_id=attempt_id, question_id=question_id)
        if not answer:
            raise NotFoundError("Question", question_id)
        question = answer.question
        if raw_value is not None and QuestionTypeEnum(question.question_type) == QuestionTypeEnum.MULTIPLE_CHOICE:
            option_ids = {o["id"] for o in question.options or []}
            if raw_value not in option_ids:
                raise ValidationError.single("raw_value", "Answer must be one of the option ids.")

        with repo.transaction("Answer", answer.id):
            answer.raw_value = raw_value
            db.add(answer)
        db.refresh(answer)
        return answer

    def submit_attempt(self, db: Session, attempt_id: int) -> ExamAttempt:
        repo = AssessmentRepository(db)
        attempt = repo.get_attempt(attempt_id)
        self._ensure_exam_running(attempt.exam)
        self._ensure_attempt_transition(attempt, AttemptStatusEnum.SUBMITTED)
        with repo.transaction("Exam attempt", attempt_id):
            attempt.status = AttemptStatusEnum.SUBMITTED
            attempt.submitted_at = datetime.now(timezone.utc)
            db.add(attempt)
            db.flush()
            progress = grading_service.auto_grade_attempt(repo, attempt)
        logger.info(f"Attempt {attempt_id} submitted; objective answers graded, progress {progress:.1f}%")
        return repo.get_attempt(attempt_id)

    def record_incident(self, db: Session, attempt_id: int, count: int = 1) -> ExamAttempt:
        repo = AssessmentRepository(db)
        attempt = repo.get_attempt(attempt_id)
        if AttemptStatusEnum(attempt.status) != AttemptStatusEnum.IN_PROGRESS:
            raise ValidationError.single("attempt", "Incidents can only be recorded during the attempt.")
        with repo.transaction("Exam attempt", attempt_id):
            attempt.incident_count = (attempt.incident_count or 0) + count
            attempt.has_incidents = True
            db.add(attempt)
        logger.warning(f"Attempt {attempt_id}: {count} incident(s) recorded, total {attempt.incident_count}")
        return repo.get_attempt(attempt_id)


exam_attempt_service = ExamAttemptService()
