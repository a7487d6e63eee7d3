from typing import List
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from examcore.schemas.response import APIResponse
from examcore.utils import deps
from examcore.schemas.average import StudentAverages
from examcore.schemas.notification import Notification
from examcore.services.aggregation import aggregation_service
from examcore.services.notification import notification_service

router = APIRouter()

@router.get("/{student_id}/averages", response_model=APIResponse[StudentAverages])
def get_student_averages(
    *,
    db: Session = Depends(deps.get_db),
    student_id: int,
    academic_year: str = Query(..., min_length=1)
):
    averages = aggregation_service.get_student_averages(db, student_id=student_id, academic_year=academic_year)
    return APIResponse(message="Student averages computed", data=averages)


@router.get("/{student_id}/notifications", response_model=APIResponse[List[Notification]])
def get_student_notifications(
    *,
    db: Session = Depends(deps.get_db),
    student_id: int,
    skip: int = 0,
    limit: int = 100
):
    notifications = notification_service.get_user_notifications(db, user_id=student_id, skip=skip, limit=limit)
    return APIResponse(
        message="Notifications retrieved successfully",
        data=[Notification.model_validate(n) for n in notifications]
    )
