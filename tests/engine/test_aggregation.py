from types import SimpleNamespace

import pytest

from examcore.core.constants import AverageStatusEnum
from examcore.core.exceptions import NotFoundError, ValidationError
from examcore.schemas.exam_result import StudentExamResult
from examcore.services.aggregation import aggregation_service


def make_course(id, semester=1, credits=3, name=None):
    return SimpleNamespace(id=id, name=name or f"Course {id}", code=f"C{id}", semester=semester, credits=credits)


def make_result(course_id, score, max_score, weight=1, exam_id=1):
    return StudentExamResult(exam_id=exam_id, course_id=course_id, exam_weight=weight, score=score,
                             max_score=max_score)


def test_weighted_course_average():
    results = [make_result(1, 15, 20, weight=1), make_result(1, 8, 10, weight=2, exam_id=2)]
    [average] = aggregation_service.compute_course_averages(results, [make_course(1)])
    assert average.average == pytest.approx(15.6667, abs=1e-4)
    assert average.status == AverageStatusEnum.PASSED
    assert average.exam_count == 2


def test_course_without_results_is_pending():
    [average] = aggregation_service.compute_course_averages([], [make_course(1)])
    assert average.average is None
    assert average.status == AverageStatusEnum.PENDING


def test_results_without_score_are_ignored():
    results = [make_result(1, None, 20), make_result(1, 12, 20, exam_id=2)]
    [average] = aggregation_service.compute_course_averages(results, [make_course(1)])
    assert average.average == 12
    assert average.exam_count == 1


def test_average_below_ten_is_pending():
    [average] = aggregation_service.compute_course_averages([make_result(1, 9.5, 20)], [make_course(1)])
    assert average.average == 9.5
    assert average.status == AverageStatusEnum.PENDING


def test_result_for_unknown_course_raises():
    with pytest.raises(NotFoundError):
        aggregation_service.compute_course_averages([make_result(99, 10, 20)], [make_course(1)])


def test_zero_max_score_is_rejected():
    with pytest.raises(ValidationError):
        aggregation_service.compute_course_averages([make_result(1, 0, 0)], [make_course(1)])


def test_output_sorted_by_semester_then_course():
    courses = [make_course(3, semester=2), make_course(2, semester=1), make_course(1, semester=2)]
    averages = aggregation_service.compute_course_averages([], courses)
    assert [(a.semester, a.course_id) for a in averages] == [(1, 2), (2, 1), (2, 3)]


def test_semester_average_weights_by_credits():
    results = [make_result(1, 16, 20), make_result(2, 10, 20, exam_id=2)]
    courses = [make_course(1, credits=6), make_course(2, credits=3)]
    [semester] = aggregation_service.compute_semester_averages(
        aggregation_service.compute_course_averages(results, courses)
    )
    assert semester.average == pytest.approx((16 * 6 + 10 * 3) / 9)
    assert semester.validated_credits == 9
    assert semester.total_credits == 9
    assert semester.status == AverageStatusEnum.PASSED


def test_semester_validation_needs_eighty_percent_of_credits():
    results = [make_result(1, 16, 20), make_result(2, 6, 20, exam_id=2)]
    courses = [make_course(1, credits=6), make_course(2, credits=3)]
    [semester] = aggregation_service.compute_semester_averages(
        aggregation_service.compute_course_averages(results, courses)
    )
    # 6 of 9 credits is below the 0.8 ratio
    assert semester.validated_credits == 6
    assert semester.status == AverageStatusEnum.PENDING


def test_semester_average_skips_courses_without_grades():
    courses = [make_course(1, credits=3), make_course(2, credits=3)]
    [semester] = aggregation_service.compute_semester_averages(
        aggregation_service.compute_course_averages([make_result(1, 14, 20)], courses)
    )
    assert semester.average == 14
    assert semester.total_credits == 6
    assert semester.status == AverageStatusEnum.PENDING


def test_semesters_are_sorted():
    courses = [make_course(1, semester=2), make_course(2, semester=1)]
    semesters = aggregation_service.compute_semester_averages(
        aggregation_service.compute_course_averages([], courses)
    )
    assert [s.semester for s in semesters] == [1, 2]


def test_normalized_grade_attached_to_result():
    result = aggregation_service.with_normalized_grade(make_result(1, 12, 16))
    assert result.normalized_grade == 15
    assert aggregation_service.with_normalized_grade(make_result(1, None, 16)).normalized_grade is None


def test_exam_statistics_ignore_missing_scores():
    exam = SimpleNamespace(id=7, title="Final", total_points=20)
    results = [
        SimpleNamespace(score=18, passed=True),
        SimpleNamespace(score=None, passed=None),
        SimpleNamespace(score=6, passed=False),
        SimpleNamespace(score=12, passed=True),
    ]
    stats = aggregation_service.compute_exam_statistics(exam, results)
    assert stats.result_count == 3
    assert stats.passed_count == 2
    assert stats.average == 12
    assert stats.highest == 18
    assert stats.lowest == 6


def test_exam_statistics_without_results():
    exam = SimpleNamespace(id=7, title="Final", total_points=20)
    stats = aggregation_service.compute_exam_statistics(exam, [])
    assert stats.result_count == 0
    assert stats.average is None
    assert stats.max_score == 20
