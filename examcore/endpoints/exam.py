from typing import List
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from examcore.schemas.response import APIResponse
from examcore.utils import deps
from examcore.schemas.exam import Exam, ExamCreate, ExamUpdate, PublishCheck
from examcore.schemas.question import Question, QuestionCreate, QuestionUpdate
from examcore.schemas.exam_attempt import ExamAttempt, ExamAttemptCreate
from examcore.schemas.exam_result import ExamStatistics
from examcore.services.aggregation import aggregation_service
from examcore.services.exam_lifecycle import exam_lifecycle_service
from examcore.services.exam_attempt import exam_attempt_service

router = APIRouter()

@router.post("/", response_model=APIResponse[Exam], status_code=status.HTTP_201_CREATED)
def create_exam(
    *,
    db: Session = Depends(deps.get_db),
    exam_in: ExamCreate
):
    new_exam = exam_lifecycle_service.create_exam(db, exam_in=exam_in)
    return APIResponse(message="Exam created successfully", data=Exam.model_validate(new_exam))


@router.get("/", response_model=APIResponse[List[Exam]])
def get_all_exams(
    db: Session = Depends(deps.get_db),
    skip: int = 0,
    limit: int = 100
):
    exams = exam_lifecycle_service.list_exams(db, skip=skip, limit=limit)
    return APIResponse(message="Exams retrieved successfully", data=[Exam.model_validate(e) for e in exams])


@router.get("/{exam_id}", response_model=APIResponse[Exam])
def get_exam(
    *,
    db: Session = Depends(deps.get_db),
    exam_id: int
):
    exam = exam_lifecycle_service.get_exam(db, exam_id=exam_id)
    return APIResponse(message="Exam retrieved successfully", data=Exam.model_validate(exam))


@router.put("/{exam_id}", response_model=APIResponse[Exam])
def update_exam(
    *,
    db: Session = Depends(deps.get_db),
    exam_id: int,
    exam_in: ExamUpdate
):
    updated_exam = exam_lifecycle_service.update_exam(db, exam_id=exam_id, exam_in=exam_in)
    return APIResponse(message="Exam updated successfully", data=Exam.model_validate(updated_exam))


@router.get("/{exam_id}/publish-check", response_model=APIResponse[PublishCheck])
def check_publish(
    *,
    db: Session = Depends(deps.get_db),
    exam_id: int
):
    check = exam_lifecycle_service.check_publish(db, exam_id=exam_id)
    message = "Exam can be published" if check.ok else "Exam cannot be published yet"
    return APIResponse(message=message, data=check)


@router.post("/{exam_id}/publish", response_model=APIResponse[Exam])
def publish_exam(
    *,
    db: Session = Depends(deps.get_db),
    exam_id: int
):
    exam = exam_lifecycle_service.publish_exam(db, exam_id=exam_id)
    return APIResponse(message="Exam published successfully", data=Exam.model_validate(exam))


@router.post("/{exam_id}/start", response_model=APIResponse[Exam])
def start_exam(
    *,
    db: Session = Depends(deps.get_db),
    exam_id: int
):
    exam = exam_lifecycle_service.start_exam(db, exam_id=exam_id)
    return APIResponse(message="Exam started", data=Exam.model_validate(exam))


@router.post("/{exam_id}/close", response_model=APIResponse[Exam])
def close_exam(
    *,
    db: Session = Depends(deps.get_db),
    exam_id: int
):
    exam = exam_lifecycle_service.close_exam(db, exam_id=exam_id)
    return APIResponse(message="Exam closed for grading", data=Exam.model_validate(exam))


@router.post("/{exam_id}/complete", response_model=APIResponse[Exam])
def complete_exam(
    *,
    db: Session = Depends(deps.get_db),
    exam_id: int
):
    exam = exam_lifecycle_service.complete_exam(db, exam_id=exam_id)
    return APIResponse(message="Exam completed", data=Exam.model_validate(exam))


@router.post("/{exam_id}/cancel", response_model=APIResponse[Exam])
def cancel_exam(
    *,
    db: Session = Depends(deps.get_db),
    exam_id: int
):
    exam = exam_lifecycle_service.cancel_exam(db, exam_id=exam_id)
    return APIResponse(message="Exam cancelled", data=Exam.model_validate(exam))


@router.get("/{exam_id}/statistics", response_model=APIResponse[ExamStatistics])
def get_exam_statistics(
    *,
    db: Session = Depends(deps.get_db),
    exam_id: int
):
    statistics = aggregation_service.get_exam_statistics(db, exam_id=exam_id)
    return APIResponse(message="Exam statistics computed", data=statistics)


@router.get("/{exam_id}/questions", response_model=APIResponse[List[Question]])
def get_exam_questions(
    *,
    db: Session = Depends(deps.get_db),
    exam_id: int
):
    questions = exam_lifecycle_service.get_questions(db, exam_id=exam_id)
    return APIResponse(message="Exam questions retrieved successfully", data=[Question.model_validate(q) for q in questions])


@router.post("/{exam_id}/questions", response_model=APIResponse[Question], status_code=status.HTTP_201_CREATED)
def create_question(
    *,
    db: Session = Depends(deps.get_db),
    exam_id: int,
    question_in: QuestionCreate
):
    new_question = exam_lifecycle_service.add_question(db, exam_id=exam_id, question_in=question_in)
    return APIResponse(message="Question created successfully", data=Question.model_validate(new_question))


@router.put("/questions/{question_id}", response_model=APIResponse[Question])
def update_question(
    *,
    db: Session = Depends(deps.get_db),
    question_id: int,
    question_in: QuestionUpdate
):
    updated_question = exam_lifecycle_service.update_question(db, question_id=question_id, question_in=question_in)
    return APIResponse(message="Question updated successfully", data=Question.model_validate(updated_question))


@router.delete("/questions/{question_id}", response_model=APIResponse[Question])
def delete_question(
    *,
    db: Session = Depends(deps.get_db),
    question_id: int
):
    deleted_question = exam_lifecycle_service.delete_question(db, question_id=question_id)
    return APIResponse(message="Question deleted successfully", data=deleted_question)


@router.get("/{exam_id}/attempts", response_model=APIResponse[List[ExamAttempt]])
def get_exam_attempts(
    *,
    db: Session = Depends(deps.get_db),
    exam_id: int
):
    attempts = exam_attempt_service.get_exam_attempts(db, exam_id=exam_id)
    return APIResponse(message="Exam attempts retrieved successfully", data=[ExamAttempt.model_validate(a) for a in attempts])


@router.post("/{exam_id}/attempts", response_model=APIResponse[ExamAttempt], status_code=status.HTTP_201_CREATED)
def assign_student(
    *,
    db: Session = Depends(deps.get_db),
    exam_id: int,
    attempt_in: ExamAttemptCreate
):
    attempt = exam_attempt_service.assign_student(db, exam_id=exam_id, student_id=attempt_in.student_id)
    return APIResponse(message="Student assigned to exam", data=ExamAttempt.model_validate(attempt))
