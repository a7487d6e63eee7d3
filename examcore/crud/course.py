from typing import List
from sqlalchemy.orm import Session

from examcore.crud.base import CRUDBase
from examcore.models.course import Course
from examcore.schemas.course import CourseCreate

class CRUDCourse(CRUDBase[Course, CourseCreate, CourseCreate]):
    def get_by_ids(self, db: Session, *, course_ids: List[int]) -> List[Course]:
        if not course_ids:
            return []
        return db.query(Course).filter(Course.id.in_(course_ids)).order_by(Course.id).all()

course = CRUDCourse(Course)
