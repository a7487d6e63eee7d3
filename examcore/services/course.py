import logging
from typing import List

from sqlalchemy.orm import Session

from examcore.core.exceptions import NotFoundError
from examcore.crud.course import course as crud_course
from examcore.crud.exam_session import exam_session as crud_exam_session
from examcore.models.course import Course
from examcore.models.exam_session import ExamSession
from examcore.schemas.course import CourseCreate, ExamSessionCreate

logger = logging.getLogger(__name__)


class CourseService:

    def create_course(self, db: Session, course_in: CourseCreate) -> Course:
        # Unset credits fall back to the column default
        new_course = crud_course.create(db, obj_in=course_in.model_dump(exclude_none=True))
        logger.info(f"Course {new_course.id} '{new_course.name}' created ({new_course.credits} credits)")
        return new_course

    def get_course(self, db: Session, course_id: int) -> Course:
        course = crud_course.get(db, id=course_id)
        if not course:
            raise NotFoundError("Course", course_id)
        return course

    def list_courses(self, db: Session, skip: int = 0, limit: int = 100) -> List[Course]:
        return crud_course.get_multi(db, skip=skip, limit=limit)

    def create_session(self, db: Session, session_in: ExamSessionCreate) -> ExamSession:
        return crud_exam_session.create(db, obj_in=session_in.model_dump(exclude_none=True))

    def list_sessions(self, db: Session, academic_year: str = None) -> List[ExamSession]:
        if academic_year:
            return crud_exam_session.get_by_academic_year(db, academic_year=academic_year)
        return crud_exam_session.get_multi(db)


course_service = CourseService()
