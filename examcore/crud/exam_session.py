from typing import List
from sqlalchemy.orm import Session

from examcore.crud.base import CRUDBase
from examcore.models.exam_session import ExamSession
from examcore.schemas.course import ExamSessionCreate

class CRUDExamSession(CRUDBase[ExamSession, ExamSessionCreate, ExamSessionCreate]):
    def get_by_academic_year(self, db: Session, *, academic_year: str) -> List[ExamSession]:
        return db.query(ExamSession).filter(ExamSession.academic_year == academic_year).all()

exam_session = CRUDExamSession(ExamSession)
