from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from typing import Optional, List, Dict
from datetime import datetime

from examcore.core.constants import QuestionTypeEnum


class QuestionOption(BaseModel):
    id: str
    text: str


def question_definition_errors(question_type: QuestionTypeEnum, options: Optional[List[QuestionOption]],
                               correct_answer: Optional[str]) -> Dict[str, str]:
    """Options/correct-answer rules shared by request validation and the publish check."""
    errors: Dict[str, str] = {}
    if question_type == QuestionTypeEnum.MULTIPLE_CHOICE:
        options = options or []
        option_ids = [o.id.strip() for o in options]
        option_texts = [o.text.strip() for o in options]
        if len(options) < 2:
            errors["options"] = "A multiple choice question needs at least 2 options."
        elif any(not i for i in option_ids) or any(not t for t in option_texts):
            errors["options"] = "Options must have a non-empty id and text."
        elif len(set(option_ids)) != len(option_ids) or len(set(option_texts)) != len(option_texts):
            errors["options"] = "Options must be distinct."
        if not correct_answer:
            errors["correct_answer"] = "A multiple choice question needs a correct answer."
        elif correct_answer not in option_ids:
            errors["correct_answer"] = "The correct answer must be one of the option ids."
    else:
        if options:
            errors["options"] = "Only multiple choice questions take options."
        if correct_answer:
            errors["correct_answer"] = "Only multiple choice questions take a correct answer."
    return errors


class QuestionBase(BaseModel):
    question_text: str = ""
    question_type: QuestionTypeEnum
    options: Optional[List[QuestionOption]] = None
    correct_answer: Optional[str] = None
    points: float = Field(gt=0)

    @model_validator(mode="after")
    def check_definition(self):
        errors = question_definition_errors(self.question_type, self.options, self.correct_answer)
        if errors:
            raise ValueError("; ".join(f"{field}: {msg}" for field, msg in errors.items()))
        return self

class QuestionCreate(QuestionBase):
    pass

class QuestionUpdate(BaseModel):
    question_text: Optional[str] = None
    question_type: Optional[QuestionTypeEnum] = None
    options: Optional[List[QuestionOption]] = None
    correct_answer: Optional[str] = None
    points: Optional[float] = Field(default=None, gt=0)

    @field_validator("question_text", "question_type", "points")
    @classmethod
    def reject_null(cls, value, info):
        if value is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return value

class Question(QuestionBase):
    id: int
    exam_id: int
    number: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
