import logging
from datetime import datetime, timezone
from typing import Dict, FrozenSet, List, Optional, Sequence

from sqlalchemy.orm import Session

from examcore.core.constants import AttemptStatusEnum, ExamStatusEnum, QUESTION_EDITABLE_EXAM_STATUSES
from examcore.core.exceptions import ValidationError
from examcore.crud.answer import answer as crud_answer
from examcore.crud.exam import exam as crud_exam
from examcore.crud.question import question as crud_question
from examcore.crud.repository import AssessmentRepository
from examcore.models.exam import Exam
from examcore.models.question import Question
from examcore.schemas.exam import ExamCreate, ExamUpdate, PublishCheck
from examcore.schemas.question import (
    Question as QuestionSchema, QuestionCreate, QuestionOption, QuestionUpdate, question_definition_errors,
)
from examcore.services.grading import grading_service

logger = logging.getLogger(__name__)

EXAM_TRANSITIONS: Dict[ExamStatusEnum, FrozenSet[ExamStatusEnum]] = {
    ExamStatusEnum.DRAFT: frozenset({ExamStatusEnum.PUBLISHED, ExamStatusEnum.CANCELLED}),
    ExamStatusEnum.PUBLISHED: frozenset({ExamStatusEnum.IN_PROGRESS, ExamStatusEnum.CANCELLED}),
    ExamStatusEnum.IN_PROGRESS: frozenset({ExamStatusEnum.GRADING, ExamStatusEnum.CANCELLED}),
    ExamStatusEnum.GRADING: frozenset({ExamStatusEnum.COMPLETED, ExamStatusEnum.CANCELLED}),
    ExamStatusEnum.COMPLETED: frozenset(),
    ExamStatusEnum.CANCELLED: frozenset(),
}


class ExamLifecycleService:

    def allowed_transitions(self, status: ExamStatusEnum) -> FrozenSet[ExamStatusEnum]:
        return EXAM_TRANSITIONS[ExamStatusEnum(status)]

    def ensure_transition(self, exam, target: ExamStatusEnum) -> None:
        current = ExamStatusEnum(exam.status)
        if target not in self.allowed_transitions(current):
            raise ValidationError.single(
                "status", f"Cannot move exam from '{current.value}' to '{ExamStatusEnum(target).value}'."
            )

    def publish_errors(self, exam, questions: Sequence, attempts_count: int) -> Dict[str, str]:
        """Every reason the exam cannot leave draft, keyed by field."""
        errors: Dict[str, str] = {}
        if ExamStatusEnum(exam.status) != ExamStatusEnum.DRAFT:
            errors["status"] = "Only a draft exam can be published."
        if not (exam.title or "").strip():
            errors["title"] = "Title is required."
        if not exam.course_id:
            errors["course_id"] = "Course is required."
        if not (exam.exam_type or "").strip():
            errors["exam_type"] = "Exam type is required."

        total_points = exam.total_points or 0
        question_points = self.sum_points(questions)
        if total_points <= 0:
            errors["total_points"] = "Total points must be greater than 0."
        elif questions and abs(total_points - question_points) > 1e-9:
            errors["total_points"] = (
                f"Total points ({total_points:g}) must equal the sum of question points ({question_points:g})."
            )
        passing_grade = exam.passing_grade or 0
        if passing_grade <= 0 or (total_points > 0 and passing_grade > total_points):
            errors["passing_grade"] = "Passing grade must be between 0 (exclusive) and the total points."

        if not exam.date:
            errors["date"] = "Date is required."
        if not exam.duration_minutes or exam.duration_minutes <= 0:
            errors["duration_minutes"] = "Duration must be greater than 0."
        if not exam.session_id:
            errors["session_id"] = "Exam session is required."

        if not questions:
            errors["questions"] = "The exam needs at least one question."
        else:
            question_error = self._question_set_error(questions)
            if question_error:
                errors["questions"] = question_error
        if attempts_count < 1:
            errors["students"] = "At least one student must be assigned."
        return errors

    def _question_set_error(self, questions: Sequence) -> Optional[str]:
        numbers = sorted(q.number for q in questions)
        if numbers != list(range(1, len(questions) + 1)):
            return "Question numbers must run from 1 to N without gaps."
        for q in sorted(questions, key=lambda q: q.number):
            if q.points is None or q.points <= 0:
                return f"Question {q.number} must be worth more than 0 points."
            definition = question_definition_errors(q.question_type, self._options(q.options), q.correct_answer)
            if definition:
                return f"Question {q.number}: " + " ".join(definition.values())
        return None

    @staticmethod
    def _options(options) -> Optional[List[QuestionOption]]:
        if options is None:
            return None
        return [o if isinstance(o, QuestionOption) else QuestionOption(**o) for o in options]

    @staticmethod
    def sum_points(questions: Sequence) -> float:
        return float(sum(q.points or 0 for q in questions))

    def can_publish(self, exam, questions: Sequence, attempts_count: int) -> PublishCheck:
        errors = self.publish_errors(exam, questions, attempts_count)
        return PublishCheck(ok=not errors, errors=errors)

    def check_points_after_edit(self, exam, new_total: float) -> None:
        """Outside draft the total follows the questions and must still cover the passing grade."""
        if new_total <= 0 or exam.passing_grade > new_total:
            raise ValidationError.single(
                "passing_grade",
                f"Passing grade ({exam.passing_grade:g}) would exceed the new total points ({new_total:g})."
            )

    def ensure_questions_editable(self, exam) -> None:
        if ExamStatusEnum(exam.status) not in QUESTION_EDITABLE_EXAM_STATUSES:
            raise ValidationError.single(
                "status", f"Questions cannot be changed while the exam is '{ExamStatusEnum(exam.status).value}'."
            )

    def create_exam(self, db: Session, exam_in: ExamCreate) -> Exam:
        data = exam_in.model_dump()
        data["status"] = ExamStatusEnum.DRAFT
        new_exam = crud_exam.create(db, obj_in=data)
        logger.info(f"Exam {new_exam.id} created in draft")
        return crud_exam.get(db, id=new_exam.id)

    def get_exam(self, db: Session, exam_id: int) -> Exam:
        return AssessmentRepository(db).get_exam(exam_id)

    def list_exams(self, db: Session, skip: int = 0, limit: int = 100) -> List[Exam]:
        return crud_exam.get_multi(db, skip=skip, limit=limit)

    def update_exam(self, db: Session, exam_id: int, exam_in: ExamUpdate) -> Exam:
        repo = AssessmentRepository(db)
        exam = repo.get_exam(exam_id)
        if ExamStatusEnum(exam.status) != ExamStatusEnum.DRAFT:
            raise ValidationError.single("status", "Only a draft exam can be edited.")
        with repo.transaction("Exam", exam_id):
            crud_exam.update(db, db_obj=exam, obj_in=exam_in, commit=False)
        return repo.get_exam(exam_id)

    def check_publish(self, db: Session, exam_id: int) -> PublishCheck:
        repo = AssessmentRepository(db)
        exam = repo.get_exam(exam_id)
        return self.can_publish(exam, repo.list_questions(exam_id), repo.count_attempts(exam_id))

    def publish_exam(self, db: Session, exam_id: int) -> Exam:
        repo = AssessmentRepository(db)
        exam = repo.get_exam(exam_id)
        errors = self.publish_errors(exam, repo.list_questions(exam_id), repo.count_attempts(exam_id))
        if errors:
            logger.info(f"Publish rejected for exam {exam_id}: {sorted(errors)}")
            raise ValidationError(errors, message="Exam cannot be published")
        return self._move(repo, exam, ExamStatusEnum.PUBLISHED)

    def start_exam(self, db: Session, exam_id: int) -> Exam:
        return self.transition(db, exam_id, ExamStatusEnum.IN_PROGRESS)

    def close_exam(self, db: Session, exam_id: int) -> Exam:
        """Move the exam to grading, submitting every attempt still being written."""
        repo = AssessmentRepository(db)
        exam = repo.get_exam(exam_id)
        self.ensure_transition(exam, ExamStatusEnum.GRADING)
        open_attempts = [
            a for a in repo.list_attempts(exam_id) if AttemptStatusEnum(a.status) == AttemptStatusEnum.IN_PROGRESS
        ]
        with repo.transaction("Exam", exam_id):
            for attempt in open_attempts:
                attempt.status = AttemptStatusEnum.SUBMITTED
                attempt.submitted_at = datetime.now(timezone.utc)
                db.add(attempt)
                db.flush()
                grading_service.auto_grade_attempt(repo, attempt)
            exam.status = ExamStatusEnum.GRADING
            db.add(exam)
        logger.info(f"Exam {exam_id} moved from in_progress to grading; {len(open_attempts)} open attempt(s) submitted")
        return repo.get_exam(exam_id)

    def complete_exam(self, db: Session, exam_id: int) -> Exam:
        return self.transition(db, exam_id, ExamStatusEnum.COMPLETED)

    def cancel_exam(self, db: Session, exam_id: int) -> Exam:
        return self.transition(db, exam_id, ExamStatusEnum.CANCELLED)

    def transition(self, db: Session, exam_id: int, target: ExamStatusEnum) -> Exam:
        if target == ExamStatusEnum.PUBLISHED:
            return self.publish_exam(db, exam_id)
        if target == ExamStatusEnum.GRADING:
            return self.close_exam(db, exam_id)
        repo = AssessmentRepository(db)
        return self._move(repo, repo.get_exam(exam_id), target)

    def _move(self, repo: AssessmentRepository, exam: Exam, target: ExamStatusEnum) -> Exam:
        self.ensure_transition(exam, target)
        previous = ExamStatusEnum(exam.status)
        with repo.transaction("Exam", exam.id):
            exam.status = target
            repo.db.add(exam)
        logger.info(f"Exam {exam.id} moved from {previous.value} to {target.value}")
        return repo.get_exam(exam.id)

    def get_questions(self, db: Session, exam_id: int) -> List[Question]:
        repo = AssessmentRepository(db)
        repo.get_exam(exam_id)
        return repo.list_questions(exam_id)

    def add_question(self, db: Session, exam_id: int, question_in: QuestionCreate) -> Question:
        repo = AssessmentRepository(db)
        exam = repo.get_exam(exam_id)
        self.ensure_questions_editable(exam)
        questions = repo.list_questions(exam_id)
        new_total = self.sum_points(questions) + question_in.points
        if ExamStatusEnum(exam.status) != ExamStatusEnum.DRAFT:
            self.check_points_after_edit(exam, new_total)

        with repo.transaction("Exam", exam_id):
            data = question_in.model_dump()
            data["exam_id"] = exam_id
            data["number"] = crud_question.next_number(db, exam_id=exam_id)
            new_question = crud_question.create(db, obj_in=data, commit=False)
            attempt_ids = [attempt.id for attempt in repo.list_attempts(exam_id)]
            for attempt_id in attempt_ids:
                crud_answer.create_blank_rows(db, attempt_id=attempt_id, question_ids=[new_question.id])
            self._sync_total(exam, new_total)
            self._refresh_progress(repo, attempt_ids)
        logger.info(f"Question {new_question.number} added to exam {exam_id}")
        db.refresh(new_question)
        return new_question

    def update_question(self, db: Session, question_id: int, question_in: QuestionUpdate) -> Question:
        repo = AssessmentRepository(db)
        question = repo.get_question(question_id)
        exam = repo.get_exam(question.exam_id)
        self.ensure_questions_editable(exam)

        changes = question_in.model_dump(exclude_unset=True)
        merged = {
            "question_type": question.question_type,
            "options": question.options,
            "correct_answer": question.correct_answer,
            "points": question.points,
        }
        merged.update({k: v for k, v in changes.items() if k in merged})
        definition = question_definition_errors(
            merged["question_type"], self._options(merged["options"]), merged["correct_answer"]
        )
        if merged["points"] is None or merged["points"] <= 0:
            definition["points"] = "Points must be greater than 0."
        if definition:
            raise ValidationError(definition, message="Invalid question")

        others = [q for q in repo.list_questions(exam.id) if q.id != question.id]
        new_total = self.sum_points(others) + merged["points"]
        if ExamStatusEnum(exam.status) != ExamStatusEnum.DRAFT:
            self.check_points_after_edit(exam, new_total)

        regrade = any(
            field in changes and changes[field] != getattr(question, field)
            for field in ("question_type", "options", "correct_answer", "points")
        )
        with repo.transaction("Question", question_id):
            if "options" in changes and changes["options"] is not None:
                changes["options"] = [dict(o) for o in changes["options"]]
            crud_question.update(db, db_obj=question, obj_in=changes, commit=False)
            if regrade:
                self._reset_grades(repo, question)
            self._sync_total(exam, new_total)
        db.refresh(question)
        return question

    def delete_question(self, db: Session, question_id: int) -> QuestionSchema:
        repo = AssessmentRepository(db)
        question = repo.get_question(question_id)
        exam = repo.get_exam(question.exam_id)
        self.ensure_questions_editable(exam)

        others = [q for q in repo.list_questions(exam.id) if q.id != question.id]
        new_total = self.sum_points(others)
        if ExamStatusEnum(exam.status) != ExamStatusEnum.DRAFT:
            self.check_points_after_edit(exam, new_total)

        affected_attempts = {a.attempt_id for a in question.answers}
        removed = QuestionSchema.model_validate(question)
        with repo.transaction("Question", question_id):
            crud_question.delete(db, id=question_id, commit=False)
            crud_question.renumber(db, exam_id=exam.id)
            self._sync_total(exam, new_total)
            self._refresh_progress(repo, affected_attempts)
        logger.info(f"Question {question_id} removed from exam {exam.id}")
        return removed

    def _sync_total(self, exam: Exam, new_total: float) -> None:
        if ExamStatusEnum(exam.status) != ExamStatusEnum.DRAFT:
            exam.total_points = new_total

    def _reset_grades(self, repo: AssessmentRepository, question: Question) -> None:
        """A changed definition invalidates every grade already given for it."""
        touched = set()
        for answer in question.answers:
            if answer.grade is None and answer.is_correct is None:
                continue
            answer.grade = None
            answer.is_correct = None
            answer.graded_manually = False
            touched.add(answer.attempt_id)
        repo.db.flush()
        self._refresh_progress(repo, touched)

    def _refresh_progress(self, repo: AssessmentRepository, attempt_ids) -> None:
        for attempt_id in attempt_ids:
            attempt = repo.get_attempt(attempt_id)
            answers = repo.list_answers(attempt_id)
            repo.write_grading_progress(attempt, grading_service.grading_progress(attempt, answers))


exam_lifecycle_service = ExamLifecycleService()
