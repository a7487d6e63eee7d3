import pytest
from sqlalchemy.orm import Session

from examcore.core.exceptions import ConcurrencyConflictError, NotFoundError
from examcore.crud.repository import AssessmentRepository
from examcore.schemas.answer import GradeOverride
from examcore.services.finalization import finalization_service
from examcore.services.grading import grading_service


def test_missing_rows_raise_not_found(db_session: Session):
    repo = AssessmentRepository(db_session)
    with pytest.raises(NotFoundError):
        repo.get_exam(404)
    with pytest.raises(NotFoundError):
        repo.get_attempt(404)
    with pytest.raises(NotFoundError):
        repo.get_result(404)


def test_questions_are_listed_by_number(db_session: Session, exam_factory):
    exam = exam_factory()
    numbers = [q.number for q in AssessmentRepository(db_session).list_questions(exam.id)]
    assert numbers == [1, 2]


def test_stale_expected_version_is_rejected(db_session: Session, submitted_attempt):
    exam, attempt, questions = submitted_attempt()
    repo = AssessmentRepository(db_session)
    essay_answer = [a for a in repo.list_answers(attempt.id) if a.grade is None][0]
    stale_version = essay_answer.version

    grading_service.record_grade(db_session, essay_answer.id, GradeOverride(grade=6, expected_version=stale_version))
    with pytest.raises(ConcurrencyConflictError) as exc_info:
        grading_service.record_grade(db_session, essay_answer.id, GradeOverride(grade=9, expected_version=stale_version))

    assert exc_info.value.expected_version == stale_version
    db_session.expire_all()
    assert repo.get_answer(essay_answer.id).grade == 6


def test_concurrent_session_write_is_a_conflict(db_session: Session, session_factory, submitted_attempt):
    exam, attempt, questions = submitted_attempt()
    repo = AssessmentRepository(db_session)
    answer = [a for a in repo.list_answers(attempt.id) if a.grade is None][0]

    other = session_factory()
    try:
        other_repo = AssessmentRepository(other)
        with other_repo.transaction("Answer", answer.id):
            other_repo.write_answer_grade(answer.id, grade=3, feedback=None, is_correct=None)
    finally:
        other.close()

    # db_session still holds the old version of the row
    with pytest.raises(ConcurrencyConflictError):
        with repo.transaction("Answer", answer.id):
            answer.grade = 7
            db_session.add(answer)
            db_session.flush()
    db_session.expire_all()
    assert repo.get_answer(answer.id).grade == 3


@pytest.mark.asyncio
async def test_finalize_writes_result_and_attempt_together(db_session: Session, submitted_attempt):
    exam, attempt, questions = submitted_attempt()
    repo = AssessmentRepository(db_session)
    essay_answer = [a for a in repo.list_answers(attempt.id) if a.grade is None][0]
    grading_service.record_grade(db_session, essay_answer.id, GradeOverride(grade=8))

    result = await finalization_service.finalize_attempt(db_session, attempt.id)

    stored_attempt = repo.get_attempt(attempt.id)
    assert result.score == 18
    assert stored_attempt.graded is True
    assert stored_attempt.score == 18
    assert stored_attempt.letter_grade == "A"
    assert stored_attempt.grading_progress == 100.0
    assert repo.get_result(attempt.id).id == result.id


@pytest.mark.asyncio
async def test_failed_finalize_leaves_attempt_untouched(db_session: Session, submitted_attempt):
    exam, attempt, questions = submitted_attempt()
    repo = AssessmentRepository(db_session)
    essay_answer = [a for a in repo.list_answers(attempt.id) if a.grade is None][0]
    grading_service.record_grade(db_session, essay_answer.id, GradeOverride(grade=8))
    version = repo.get_attempt(attempt.id).version

    with pytest.raises(ConcurrencyConflictError):
        await finalization_service.finalize_attempt(db_session, attempt.id, expected_version=version - 1)

    db_session.expire_all()
    stored_attempt = repo.get_attempt(attempt.id)
    assert stored_attempt.graded is False
    assert stored_attempt.score is None
    with pytest.raises(NotFoundError):
        repo.get_result(attempt.id)


@pytest.mark.asyncio
async def test_refinalize_replaces_the_result(db_session: Session, submitted_attempt):
    exam, attempt, questions = submitted_attempt()
    repo = AssessmentRepository(db_session)
    essay_answer = [a for a in repo.list_answers(attempt.id) if a.grade is None][0]
    grading_service.record_grade(db_session, essay_answer.id, GradeOverride(grade=8))
    first = await finalization_service.finalize_attempt(db_session, attempt.id)
    first_id = first.id

    grading_service.record_grade(db_session, essay_answer.id, GradeOverride(grade=2))
    second = await finalization_service.finalize_attempt(db_session, attempt.id)

    assert second.id == first_id
    assert second.score == 12
    assert second.letter_grade == "D"
    assert second.passed is True
