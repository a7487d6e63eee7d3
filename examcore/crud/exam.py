from sqlalchemy.orm import Session, selectinload
from typing import List, Optional

from examcore.crud.base import CRUDBase
from examcore.models.exam import Exam
from examcore.schemas.exam import ExamCreate, ExamUpdate


class CRUDExam(CRUDBase[Exam, ExamCreate, ExamUpdate]):

    def _query_with_relationships(self, db: Session):
        return db.query(Exam).options(
            selectinload(Exam.questions),
            selectinload(Exam.course),
            selectinload(Exam.session)
        )

    def get(self, db: Session, id: int) -> Optional[Exam]:
        return self._query_with_relationships(db).filter(Exam.id == id).first()

    def get_multi(self, db: Session, skip: int = 0, limit: int = 100) -> List[Exam]:
        return (
            self._query_with_relationships(db)
            .order_by(Exam.id)
            .offset(skip)
            .limit(limit)
            .all()
        )


exam = CRUDExam(Exam)
