import sys
import os
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

# Must be set before examcore.core.config is imported
os.environ.setdefault("DATABASE_URL", os.environ.get("TEST_DATABASE_URL", "sqlite:///./test_examcore.db"))
os.environ.setdefault("NOTIFICATIONS_ENABLED", "false")
os.environ.setdefault("LOG_DIR", "./test_logs")

import pytest
from datetime import datetime, timezone
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient

from examcore.core.base import Base
from examcore.core.database import engine
from examcore.core.constants import QuestionTypeEnum
from examcore.crud.course import course as crud_course
from examcore.crud.exam_session import exam_session as crud_exam_session
from examcore.schemas.exam import ExamCreate
from examcore.schemas.question import QuestionCreate
from examcore.services.exam_lifecycle import exam_lifecycle_service
from examcore.services.exam_attempt import exam_attempt_service
from examcore.utils import deps as deps_utils
import main

MCQ_OPTIONS = [{"id": "a", "text": "Paris"}, {"id": "b", "text": "Lyon"}, {"id": "c", "text": "Nice"}]


@pytest.fixture(scope="session")
def database_engine():
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()
    if engine.url.database and os.path.exists(engine.url.database):
        os.remove(engine.url.database)

@pytest.fixture(scope="function")
def session_factory(database_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=database_engine)

@pytest.fixture(scope="function")
def db_session(session_factory, database_engine):
    db = session_factory()
    try:
        yield db
    finally:
        db.rollback()
        db.close()
        with database_engine.begin() as conn:
            for table in reversed(Base.metadata.sorted_tables):
                conn.execute(table.delete())

@pytest.fixture(scope="function")
def client(db_session):
    main.app.dependency_overrides[deps_utils.get_db] = lambda: db_session
    with TestClient(main.app) as test_client:
        yield test_client
    main.app.dependency_overrides.clear()

@pytest.fixture
def course_factory(db_session):
    def _create(name="Mathematics", code=None, semester=1, credits=3):
        course = crud_course.create(
            db_session, obj_in={"name": name, "code": code or name[:4].upper(), "semester": semester, "credits": credits}
        )
        return course
    return _create

@pytest.fixture
def exam_session_factory(db_session):
    def _create(name="Winter session", academic_year="2024-2025", semester=1):
        return crud_exam_session.create(
            db_session, obj_in={"name": name, "academic_year": academic_year, "semester": semester}
        )
    return _create

@pytest.fixture
def exam_factory(db_session, course_factory, exam_session_factory):
    """Draft exam with one MCQ worth 10 and one essay worth 10, ready to publish once a student is assigned."""
    def _create(title="Final Exam", course=None, exam_session=None, total_points=20, passing_grade=10,
                weight=1, questions=None):
        course = course or course_factory()
        exam_session = exam_session or exam_session_factory()
        exam = exam_lifecycle_service.create_exam(db_session, ExamCreate(
            title=title,
            course_id=course.id,
            session_id=exam_session.id,
            exam_type="final",
            total_points=total_points,
            passing_grade=passing_grade,
            weight=weight,
            date=datetime(2025, 1, 15, 9, 0, tzinfo=timezone.utc),
            duration_minutes=120,
        ))
        if questions is None:
            questions = [
                QuestionCreate(
                    question_text="Capital of France?",
                    question_type=QuestionTypeEnum.MULTIPLE_CHOICE,
                    options=MCQ_OPTIONS,
                    correct_answer="a",
                    points=10,
                ),
                QuestionCreate(
                    question_text="Explain the French revolution.",
                    question_type=QuestionTypeEnum.ESSAY,
                    points=10,
                ),
            ]
        for question_in in questions:
            exam_lifecycle_service.add_question(db_session, exam.id, question_in)
        return exam_lifecycle_service.get_exam(db_session, exam.id)
    return _create

@pytest.fixture
def running_exam(db_session, exam_factory):
    """Published and started exam with one assigned student; returns (exam, attempt)."""
    def _create(student_id=1001, **kwargs):
        exam = exam_factory(**kwargs)
        attempt = exam_attempt_service.assign_student(db_session, exam.id, student_id)
        exam_lifecycle_service.publish_exam(db_session, exam.id)
        exam_lifecycle_service.start_exam(db_session, exam.id)
        return exam_lifecycle_service.get_exam(db_session, exam.id), attempt
    return _create

@pytest.fixture
def submitted_attempt(db_session, running_exam):
    """Attempt whose MCQ was answered with `mcq_answer` and then submitted."""
    def _create(mcq_answer="a", essay_answer="Because of the estates.", student_id=1001, **kwargs):
        exam, attempt = running_exam(student_id=student_id, **kwargs)
        questions = exam_lifecycle_service.get_questions(db_session, exam.id)
        exam_attempt_service.start_attempt(db_session, attempt.id)
        for question in questions:
            value = mcq_answer if question.question_type == QuestionTypeEnum.MULTIPLE_CHOICE else essay_answer
            exam_attempt_service.submit_answer(db_session, attempt.id, question.id, value)
        attempt = exam_attempt_service.submit_attempt(db_session, attempt.id)
        return exam, attempt, questions
    return _create
