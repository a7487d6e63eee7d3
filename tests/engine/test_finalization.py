from types import SimpleNamespace

import pytest

from examcore.core.constants import ExamStatusEnum
from examcore.core.exceptions import IncompleteGradingError, ValidationError
from examcore.services.finalization import finalization_service


def make_exam(total_points=20, passing_grade=10, status=ExamStatusEnum.GRADING):
    return SimpleNamespace(id=1, title="Final Exam", total_points=total_points, passing_grade=passing_grade,
                           status=status)


def make_attempt(has_incidents=False, incident_count=0):
    return SimpleNamespace(id=7, exam_id=1, student_id=1001, has_incidents=has_incidents,
                           incident_count=incident_count, feedback=None)


def make_answers(*grades):
    return [
        SimpleNamespace(id=n, attempt_id=7, question_id=n, question_number=n, grade=grade)
        for n, grade in enumerate(grades, start=1)
    ]


def test_mcq_correct_plus_manual_eight():
    result = finalization_service.finalize(make_exam(), make_attempt(), make_answers(10, 8))
    assert result.score == 18
    assert result.max_score == 20
    assert result.percentage == 90.0
    assert result.letter_grade == "A"
    assert result.passed is True


def test_half_marks_pass_on_absolute_threshold():
    result = finalization_service.finalize(make_exam(), make_attempt(), make_answers(10, 0))
    assert result.score == 10
    assert result.percentage == 50.0
    assert result.letter_grade == "E"
    assert result.passed is True


def test_below_passing_points_fails():
    result = finalization_service.finalize(make_exam(), make_attempt(), make_answers(5, 4.5))
    assert result.passed is False
    assert result.letter_grade == "F"


def test_ungraded_question_is_named():
    with pytest.raises(IncompleteGradingError) as exc_info:
        finalization_service.finalize(make_exam(), make_attempt(), make_answers(10, None))
    assert exc_info.value.question_numbers == [2]


def test_finalize_is_idempotent():
    answers = make_answers(10, 8)
    first = finalization_service.finalize(make_exam(), make_attempt(), answers)
    second = finalization_service.finalize(make_exam(), make_attempt(), answers)
    assert first == second


def test_incidents_are_copied_to_result():
    result = finalization_service.finalize(
        make_exam(), make_attempt(has_incidents=True, incident_count=2), make_answers(10, 8), feedback="Seen twice"
    )
    assert result.has_incidents is True
    assert result.incident_count == 2
    assert result.feedback == "Seen twice"


def test_zero_total_points_is_rejected():
    with pytest.raises(ValidationError) as exc_info:
        finalization_service.finalize(make_exam(total_points=0), make_attempt(), make_answers(0))
    assert "total_points" in exc_info.value.errors


@pytest.mark.parametrize("status", [ExamStatusEnum.DRAFT, ExamStatusEnum.PUBLISHED, ExamStatusEnum.CANCELLED])
def test_exam_status_must_allow_finalization(status):
    with pytest.raises(ValidationError):
        finalization_service.finalize(make_exam(status=status), make_attempt(), make_answers(10, 8))


def test_attempt_of_another_exam_is_rejected():
    attempt = make_attempt()
    attempt.exam_id = 2
    with pytest.raises(ValidationError):
        finalization_service.finalize(make_exam(), attempt, make_answers(10, 8))
