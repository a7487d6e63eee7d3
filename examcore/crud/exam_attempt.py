from sqlalchemy.orm import Session, selectinload
from typing import List, Optional

from examcore.crud.base import CRUDBase
from examcore.models.exam_attempt import ExamAttempt
from examcore.schemas.exam_attempt import ExamAttemptCreate


class CRUDExamAttempt(CRUDBase[ExamAttempt, ExamAttemptCreate, ExamAttemptCreate]):

    def _query_with_relationships(self, db: Session):
        return db.query(ExamAttempt).options(
            selectinload(ExamAttempt.exam)
        )

    def get(self, db: Session, id: int) -> Optional[ExamAttempt]:
        return self._query_with_relationships(db).filter(ExamAttempt.id == id).first()

    def get_all_by_exam(self, db: Session, exam_id: int) -> List[ExamAttempt]:
        return (
            self._query_with_relationships(db)
            .filter(ExamAttempt.exam_id == exam_id)
            .order_by(ExamAttempt.id)
            .all()
        )

    def get_by_exam_and_student(self, db: Session, exam_id: int, student_id: int) -> Optional[ExamAttempt]:
        return (
            self._query_with_relationships(db)
            .filter(ExamAttempt.exam_id == exam_id, ExamAttempt.student_id == student_id)
            .first()
        )

    def count_by_exam(self, db: Session, exam_id: int) -> int:
        return db.query(ExamAttempt).filter(ExamAttempt.exam_id == exam_id).count()


exam_attempt = CRUDExamAttempt(ExamAttempt)
