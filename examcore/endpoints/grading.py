from typing import Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from examcore.schemas.response import APIResponse
from examcore.utils import deps
from examcore.schemas.answer import GradedAnswer, GradeOverride
from examcore.schemas.exam_attempt import AttemptGradingView, FinalizeRequest
from examcore.schemas.exam_result import ExamResult
from examcore.services.grading import grading_service
from examcore.services.finalization import finalization_service

router = APIRouter()

@router.get("/attempts/{attempt_id}", response_model=APIResponse[AttemptGradingView])
def get_grading_view(
    *,
    db: Session = Depends(deps.get_db),
    attempt_id: int
):
    view = grading_service.get_grading_view(db, attempt_id=attempt_id)
    return APIResponse(message="Attempt retrieved for grading", data=view)


@router.put("/answers/{answer_id}", response_model=APIResponse[GradedAnswer])
def grade_answer(
    *,
    db: Session = Depends(deps.get_db),
    answer_id: int,
    grade_in: GradeOverride
):
    graded = grading_service.record_grade(db, answer_id=answer_id, override=grade_in)
    return APIResponse(message="Answer graded", data=graded)


@router.post("/attempts/{attempt_id}/finalize", response_model=APIResponse[ExamResult])
async def finalize_attempt(
    *,
    db: Session = Depends(deps.get_db),
    attempt_id: int,
    finalize_in: Optional[FinalizeRequest] = None
):
    finalize_in = finalize_in or FinalizeRequest()
    result = await finalization_service.finalize_attempt(
        db, attempt_id=attempt_id, feedback=finalize_in.feedback, expected_version=finalize_in.expected_version
    )
    return APIResponse(message="Exam result finalized", data=ExamResult.model_validate(result))


@router.get("/attempts/{attempt_id}/result", response_model=APIResponse[ExamResult])
def get_result(
    *,
    db: Session = Depends(deps.get_db),
    attempt_id: int
):
    result = finalization_service.get_result(db, attempt_id=attempt_id)
    return APIResponse(message="Exam result retrieved successfully", data=ExamResult.model_validate(result))
