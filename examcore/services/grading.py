import logging
from typing import List, Optional, Sequence

from sqlalchemy.orm import Session

from examcore.core.constants import (
    AttemptStatusEnum, ExamStatusEnum, QuestionTypeEnum, GRADABLE_EXAM_STATUSES, OBJECTIVE_QUESTION_TYPES,
)
from examcore.core.exceptions import IncompleteGradingError, ValidationError
from examcore.crud.repository import AssessmentRepository
from examcore.schemas.answer import Answer, GradeJudgment, GradeOverride, GradedAnswer
from examcore.schemas.exam_attempt import AttemptGradingView, ExamAttempt

logger = logging.getLogger(__name__)


class GradingService:

    def judge(self, question, raw_value: Optional[str], override: Optional[GradeOverride] = None) -> GradeJudgment:
        question_type = QuestionTypeEnum(question.question_type)
        points = question.points
        has_manual_grade = override is not None and override.grade is not None

        if has_manual_grade and override.grade > points:
            raise ValidationError.single("grade", f"Grade must be between 0 and {points:g}.")

        if question_type in OBJECTIVE_QUESTION_TYPES:
            if has_manual_grade:
                is_correct = override.is_correct
                if is_correct is None:
                    is_correct = override.grade >= points
                return GradeJudgment(is_correct=is_correct, grade=override.grade, graded_manually=True)
            is_correct = raw_value is not None and raw_value == question.correct_answer
            return GradeJudgment(is_correct=is_correct, grade=points if is_correct else 0.0)

        if not has_manual_grade:
            raise ValidationError.single(
                "grade", f"A {question_type.value.replace('_', ' ')} answer must be graded by staff."
            )
        return GradeJudgment(is_correct=override.is_correct, grade=override.grade, graded_manually=True)

    def grade_answer(self, question, answer, override: Optional[GradeOverride] = None) -> Answer:
        """Return the answer with the grade applied; nothing is written."""
        if answer.question_id != question.id:
            raise ValidationError.single("question_id", "Answer does not belong to this question.")
        judgment = self.judge(question, answer.raw_value, override)
        current = Answer.model_validate(answer)
        updates = {
            "is_correct": judgment.is_correct,
            "grade": judgment.grade,
            "graded_manually": judgment.graded_manually,
        }
        if override is not None and override.feedback is not None:
            updates["feedback"] = override.feedback
        return current.model_copy(update=updates)

    def grading_progress(self, attempt, answers: Sequence) -> float:
        own = [a for a in answers if a.attempt_id == attempt.id]
        if not own:
            return 0.0
        graded = sum(1 for a in own if a.grade is not None)
        return graded / len(own) * 100

    def ungraded_question_numbers(self, answers: Sequence, questions: Optional[Sequence] = None) -> List[int]:
        missing = {a.question_number for a in answers if a.grade is None}
        if questions is not None:
            answered = {a.question_id for a in answers}
            missing.update(q.number for q in questions if q.id not in answered)
        return sorted(n for n in missing if n is not None)

    def ensure_fully_graded(self, answers: Sequence, questions: Optional[Sequence] = None) -> None:
        ungraded = [a for a in answers if a.grade is None]
        numbers = self.ungraded_question_numbers(answers, questions)
        if ungraded or numbers or not answers:
            raise IncompleteGradingError(numbers)

    def ensure_exam_gradable(self, exam) -> None:
        status = ExamStatusEnum(exam.status)
        if status not in GRADABLE_EXAM_STATUSES:
            raise ValidationError.single("status", f"Answers cannot be graded while the exam is '{status.value}'.")

    def record_grade(self, db: Session, answer_id: int, override: GradeOverride) -> GradedAnswer:
        repo = AssessmentRepository(db)
        answer = repo.get_answer(answer_id)
        attempt = repo.get_attempt(answer.attempt_id)
        exam = repo.get_exam(attempt.exam_id)
        self.ensure_exam_gradable(exam)
        if AttemptStatusEnum(attempt.status) != AttemptStatusEnum.SUBMITTED:
            raise ValidationError.single("attempt", "Only submitted attempts can be graded.")

        graded = self.grade_answer(answer.question, answer, override)
        with repo.transaction("Answer", answer_id):
            repo.write_answer_grade(
                answer_id,
                grade=graded.grade,
                feedback=graded.feedback,
                is_correct=graded.is_correct,
                graded_manually=graded.graded_manually,
                expected_version=override.expected_version,
            )
            progress = self.grading_progress(attempt, repo.list_answers(attempt.id))
            repo.write_grading_progress(attempt, progress)

        logger.info(
            f"Answer {answer_id} (question {answer.question_number}) graded {graded.grade:g}; "
            f"attempt {attempt.id} progress {progress:.1f}%"
        )
        db.refresh(answer)
        return GradedAnswer(answer=Answer.model_validate(answer), progress=progress)

    def auto_grade_attempt(self, repo: AssessmentRepository, attempt) -> float:
        """Grade every objective answer not already graded by staff. Flushes only."""
        answers = repo.list_answers(attempt.id)
        for answer in answers:
            question = answer.question
            if QuestionTypeEnum(question.question_type) not in OBJECTIVE_QUESTION_TYPES or answer.graded_manually:
                continue
            judgment = self.judge(question, answer.raw_value)
            repo.write_answer_grade(
                answer.id, grade=judgment.grade, feedback=None, is_correct=judgment.is_correct, graded_manually=False
            )
        progress = self.grading_progress(attempt, answers)
        repo.write_grading_progress(attempt, progress)
        return progress

    def get_grading_view(self, db: Session, attempt_id: int) -> AttemptGradingView:
        repo = AssessmentRepository(db)
        attempt = repo.get_attempt(attempt_id)
        answers = repo.list_answers(attempt_id)
        return AttemptGradingView(
            attempt=ExamAttempt.model_validate(attempt),
            answers=[Answer.model_validate(a) for a in answers],
            progress=self.grading_progress(attempt, answers),
        )


grading_service = GradingService()
