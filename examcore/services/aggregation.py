import logging
from collections import defaultdict
from typing import Dict, List, Sequence

from sqlalchemy.orm import Session

from examcore.core.config import settings
from examcore.core.constants import AverageStatusEnum
from examcore.core.exceptions import NotFoundError, ValidationError
from examcore.crud.repository import AssessmentRepository
from examcore.schemas.average import CourseAverage, SemesterAverage, StudentAverages
from examcore.schemas.exam_result import ExamStatistics, StudentExamResult

logger = logging.getLogger(__name__)


class AggregationService:
    """Course and semester roll-ups, recomputed from scratch on every call.

    Each exam score is rescaled onto the 0-20 reference scale, averaged per
    course with the exam weights, then averaged per semester with the course
    credits.
    """

    def normalized_grade(self, score: float, max_score: float) -> float:
        if not max_score or max_score <= 0:
            raise ValidationError.single("max_score", "Max score must be greater than 0.")
        return score / max_score * settings.NORMALIZED_GRADE_SCALE

    def compute_course_averages(self, results: Sequence, courses: Sequence) -> List[CourseAverage]:
        courses_by_id = {c.id: c for c in courses}
        grouped: Dict[int, list] = defaultdict(list)
        for result in results:
            if result.score is None:
                continue
            if result.course_id is None:
                logger.debug(f"Exam {result.exam_id} has no course; left out of course averages")
                continue
            if result.course_id not in courses_by_id:
                raise NotFoundError("Course", result.course_id)
            grouped[result.course_id].append(result)

        averages = []
        for course in sorted(courses, key=lambda c: (c.semester, c.id)):
            course_results = grouped.get(course.id, [])
            weight_sum = 0.0
            weighted_sum = 0.0
            for result in course_results:
                weight = result.exam_weight if result.exam_weight is not None else 1
                weighted_sum += self.normalized_grade(result.score, result.max_score) * weight
                weight_sum += weight
            average = weighted_sum / weight_sum if weight_sum > 0 else None
            passed = average is not None and average >= settings.COURSE_PASS_AVERAGE
            averages.append(CourseAverage(
                course_id=course.id,
                course_name=course.name,
                course_code=course.code,
                average=average,
                semester=course.semester,
                status=AverageStatusEnum.PASSED if passed else AverageStatusEnum.PENDING,
                credits=course.credits,
                exam_count=len(course_results),
            ))
        return averages

    def compute_semester_averages(self, course_averages: Sequence[CourseAverage]) -> List[SemesterAverage]:
        by_semester: Dict[int, List[CourseAverage]] = defaultdict(list)
        for course_average in course_averages:
            by_semester[course_average.semester].append(course_average)

        semesters = []
        for semester in sorted(by_semester):
            entries = by_semester[semester]
            total_credits = sum(c.credits for c in entries)
            validated_credits = sum(c.credits for c in entries if c.status == AverageStatusEnum.PASSED)
            graded = [c for c in entries if c.average is not None]
            graded_credits = sum(c.credits for c in graded)
            average = (
                sum(c.average * c.credits for c in graded) / graded_credits if graded_credits > 0 else None
            )
            validated = validated_credits >= settings.SEMESTER_VALIDATION_RATIO * total_credits
            semesters.append(SemesterAverage(
                semester=semester,
                average=average,
                validated_credits=validated_credits,
                total_credits=total_credits,
                status=AverageStatusEnum.PASSED if validated else AverageStatusEnum.PENDING,
            ))
        return semesters

    def get_student_averages(self, db: Session, student_id: int, academic_year: str) -> StudentAverages:
        repo = AssessmentRepository(db)
        results = repo.list_exam_results_for_student(student_id, academic_year)
        course_ids = sorted({r.course_id for r in results if r.course_id is not None})
        courses = repo.list_courses(course_ids)
        course_averages = self.compute_course_averages(results, courses)
        return StudentAverages(
            student_id=student_id,
            academic_year=academic_year,
            courses=course_averages,
            semesters=self.compute_semester_averages(course_averages),
            results=[self.with_normalized_grade(r) for r in results],
        )

    def with_normalized_grade(self, result: StudentExamResult) -> StudentExamResult:
        if result.score is None:
            return result
        return result.model_copy(update={"normalized_grade": self.normalized_grade(result.score, result.max_score)})

    def compute_exam_statistics(self, exam, results: Sequence) -> ExamStatistics:
        scores = [r.score for r in results if r.score is not None]
        if not scores:
            return ExamStatistics(exam_id=exam.id, exam_title=exam.title, max_score=exam.total_points)
        return ExamStatistics(
            exam_id=exam.id,
            exam_title=exam.title,
            max_score=exam.total_points,
            result_count=len(scores),
            passed_count=sum(1 for r in results if r.score is not None and r.passed),
            average=sum(scores) / len(scores),
            highest=max(scores),
            lowest=min(scores),
        )

    def get_exam_statistics(self, db: Session, exam_id: int) -> ExamStatistics:
        repo = AssessmentRepository(db)
        exam = repo.get_exam(exam_id)
        return self.compute_exam_statistics(exam, repo.list_exam_results(exam_id))


aggregation_service = AggregationService()
