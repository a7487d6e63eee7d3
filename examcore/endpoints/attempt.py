from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from examcore.schemas.response import APIResponse
from examcore.utils import deps
from examcore.schemas.answer import Answer, AnswerSubmit
from examcore.schemas.exam_attempt import ExamAttempt, IncidentCreate
from examcore.services.exam_attempt import exam_attempt_service

router = APIRouter()

@router.get("/{attempt_id}", response_model=APIResponse[ExamAttempt])
def get_attempt(
    *,
    db: Session = Depends(deps.get_db),
    attempt_id: int
):
    attempt = exam_attempt_service.get_attempt(db, attempt_id=attempt_id)
    return APIResponse(message="Exam attempt retrieved successfully", data=ExamAttempt.model_validate(attempt))


@router.post("/{attempt_id}/start", response_model=APIResponse[ExamAttempt])
def start_attempt(
    *,
    db: Session = Depends(deps.get_db),
    attempt_id: int
):
    attempt = exam_attempt_service.start_attempt(db, attempt_id=attempt_id)
    return APIResponse(message="Exam attempt started", data=ExamAttempt.model_validate(attempt))


@router.put("/{attempt_id}/answers/{question_id}", response_model=APIResponse[Answer])
def submit_answer(
    *,
    db: Session = Depends(deps.get_db),
    attempt_id: int,
    question_id: int,
    answer_in: AnswerSubmit
):
    answer = exam_attempt_service.submit_answer(
        db, attempt_id=attempt_id, question_id=question_id, raw_value=answer_in.raw_value
    )
    return APIResponse(message="Answer saved", data=Answer.model_validate(answer))


@router.post("/{attempt_id}/submit", response_model=APIResponse[ExamAttempt])
def submit_attempt(
    *,
    db: Session = Depends(deps.get_db),
    attempt_id: int
):
    attempt = exam_attempt_service.submit_attempt(db, attempt_id=attempt_id)
    return APIResponse(message="Exam attempt submitted", data=ExamAttempt.model_validate(attempt))


@router.post("/{attempt_id}/incidents", response_model=APIResponse[ExamAttempt])
def record_incident(
    *,
    db: Session = Depends(deps.get_db),
    attempt_id: int,
    incident_in: IncidentCreate
):
    attempt = exam_attempt_service.record_incident(db, attempt_id=attempt_id, count=incident_in.count)
    return APIResponse(message="Incident recorded", data=ExamAttempt.model_validate(attempt))
