from typing import List
from sqlalchemy import func
from sqlalchemy.orm import Session

from examcore.crud.base import CRUDBase
from examcore.models.question import Question
from examcore.schemas.question import QuestionCreate, QuestionUpdate

class CRUDQuestion(CRUDBase[Question, QuestionCreate, QuestionUpdate]):
    def get_by_exam(self, db: Session, *, exam_id: int) -> List[Question]:
        return (
            db.query(self.model)
            .filter(self.model.exam_id == exam_id)
            .order_by(self.model.number)
            .all()
        )

    def next_number(self, db: Session, *, exam_id: int) -> int:
        current = db.query(func.max(self.model.number)).filter(self.model.exam_id == exam_id).scalar()
        return (current or 0) + 1

    def renumber(self, db: Session, *, exam_id: int) -> List[Question]:
        """Close gaps so numbers stay sequential 1..N, keeping the current order."""
        questions = self.get_by_exam(db, exam_id=exam_id)
        # Two passes so the unique (exam_id, number) constraint never sees a duplicate
        for q in questions:
            q.number = -q.number
        db.flush()
        for position, q in enumerate(questions, start=1):
            q.number = position
        db.flush()
        return questions

question = CRUDQuestion(Question)
