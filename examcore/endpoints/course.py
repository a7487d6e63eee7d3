from typing import List, Optional
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from examcore.schemas.response import APIResponse
from examcore.utils import deps
from examcore.schemas.course import Course, CourseCreate, ExamSession, ExamSessionCreate
from examcore.services.course import course_service

router = APIRouter()

@router.post("/courses", response_model=APIResponse[Course], status_code=status.HTTP_201_CREATED)
def create_course(
    *,
    db: Session = Depends(deps.get_db),
    course_in: CourseCreate
):
    new_course = course_service.create_course(db, course_in=course_in)
    return APIResponse(message="Course created successfully", data=Course.model_validate(new_course))


@router.get("/courses", response_model=APIResponse[List[Course]])
def get_all_courses(
    db: Session = Depends(deps.get_db),
    skip: int = 0,
    limit: int = 100
):
    courses = course_service.list_courses(db, skip=skip, limit=limit)
    return APIResponse(message="Courses retrieved successfully", data=[Course.model_validate(c) for c in courses])


@router.get("/courses/{course_id}", response_model=APIResponse[Course])
def get_course(
    *,
    db: Session = Depends(deps.get_db),
    course_id: int
):
    course = course_service.get_course(db, course_id=course_id)
    return APIResponse(message="Course retrieved successfully", data=Course.model_validate(course))


@router.post("/sessions", response_model=APIResponse[ExamSession], status_code=status.HTTP_201_CREATED)
def create_session(
    *,
    db: Session = Depends(deps.get_db),
    session_in: ExamSessionCreate
):
    new_session = course_service.create_session(db, session_in=session_in)
    return APIResponse(message="Exam session created successfully", data=ExamSession.model_validate(new_session))


@router.get("/sessions", response_model=APIResponse[List[ExamSession]])
def get_sessions(
    db: Session = Depends(deps.get_db),
    academic_year: Optional[str] = None
):
    sessions = course_service.list_sessions(db, academic_year=academic_year)
    return APIResponse(message="Exam sessions retrieved successfully", data=[ExamSession.model_validate(s) for s in sessions])
