from enum import Enum


class ExamStatusEnum(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    IN_PROGRESS = "in_progress"
    GRADING = "grading"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

class QuestionTypeEnum(str, Enum):
    MULTIPLE_CHOICE = "multiple_choice"
    SHORT_ANSWER = "short_answer"
    ESSAY = "essay"

class AttemptStatusEnum(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    SUBMITTED = "submitted"

class AverageStatusEnum(str, Enum):
    PASSED = "passed"
    PENDING = "pending"

class EventTypeEnum(str, Enum):
    EXAM_GRADED = "exam_graded"


# Exam states in which answers may be graded
GRADABLE_EXAM_STATUSES = frozenset({
    ExamStatusEnum.PUBLISHED,
    ExamStatusEnum.IN_PROGRESS,
    ExamStatusEnum.GRADING,
})

# Exam states in which an attempt may be (re-)finalized
FINALIZABLE_EXAM_STATUSES = frozenset({
    ExamStatusEnum.IN_PROGRESS,
    ExamStatusEnum.GRADING,
    ExamStatusEnum.COMPLETED,
})

# Exam states in which the question set may change
QUESTION_EDITABLE_EXAM_STATUSES = frozenset({
    ExamStatusEnum.DRAFT,
    ExamStatusEnum.PUBLISHED,
    ExamStatusEnum.IN_PROGRESS,
})

OBJECTIVE_QUESTION_TYPES = frozenset({QuestionTypeEnum.MULTIPLE_CHOICE})
