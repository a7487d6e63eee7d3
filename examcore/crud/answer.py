from sqlalchemy.orm import Session, selectinload
from typing import Iterable, List, Optional

from examcore.crud.base import CRUDBase
from examcore.models.answer import Answer
from examcore.models.question import Question
from examcore.schemas.answer import AnswerSubmit


class CRUDAnswer(CRUDBase[Answer, AnswerSubmit, AnswerSubmit]):

    def _query_with_relationships(self, db: Session):
        return db.query(Answer).options(
            selectinload(Answer.question)
        )

    def get(self, db: Session, id: int) -> Optional[Answer]:
        return self._query_with_relationships(db).filter(Answer.id == id).first()

    def get_all_by_attempt(self, db: Session, attempt_id: int) -> List[Answer]:
        return (
            self._query_with_relationships(db)
            .join(Question, Answer.question_id == Question.id)
            .filter(Answer.attempt_id == attempt_id)
            .order_by(Question.number)
            .all()
        )

    def get_by_attempt_and_question(self, db: Session, attempt_id: int, question_id: int) -> Optional[Answer]:
        return (
            self._query_with_relationships(db)
            .filter(Answer.attempt_id == attempt_id)
            .filter(Answer.question_id == question_id)
            .first()
        )

    def create_blank_rows(self, db: Session, *, attempt_id: int, question_ids: Iterable[int]) -> List[Answer]:
        """One unanswered row per question; existing rows are left untouched."""
        existing = {
            row.question_id for row in db.query(Answer.question_id).filter(Answer.attempt_id == attempt_id)
        }
        created = []
        for question_id in question_ids:
            if question_id in existing:
                continue
            row = Answer(attempt_id=attempt_id, question_id=question_id)
            db.add(row)
            created.append(row)
        db.flush()
        return created


answer = CRUDAnswer(Answer)
