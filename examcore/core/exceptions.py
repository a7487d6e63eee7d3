from typing import Any, Dict, Iterable, List, Optional


class ExamCoreError(Exception):
    """Base class for errors raised by the exam lifecycle and grading engine.

    Attributes:
        message: Human-readable error message
        status_code: HTTP status the API layer maps this error to
        error_code: Stable code for client handling
        details: Additional error context
    """
    status_code: int = 400
    error_code: str = "BAD_REQUEST"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class ValidationError(ExamCoreError):
    """Structural or business-rule violation, one message per field."""
    status_code = 422
    error_code = "VALIDATION_ERROR"

    def __init__(self, errors: Dict[str, str], message: str = "Validation failed") -> None:
        self.errors = dict(errors)
        super().__init__(message, details={"errors": self.errors})

    @classmethod
    def single(cls, field: str, message: str) -> "ValidationError":
        return cls({field: message}, message=message)


class IncompleteGradingError(ExamCoreError):
    """Finalization attempted while some answers still have no grade."""
    status_code = 409
    error_code = "INCOMPLETE_GRADING"

    def __init__(self, question_numbers: Iterable[int]) -> None:
        self.question_numbers: List[int] = sorted(set(question_numbers))
        if self.question_numbers:
            numbers = ", ".join(str(n) for n in self.question_numbers)
            message = f"Cannot finalize: question(s) {numbers} not graded yet."
        else:
            message = "Cannot finalize: the attempt has no graded answers."
        super().__init__(
            message,
            details={"ungraded_questions": self.question_numbers}
        )


class NotFoundError(ExamCoreError):
    status_code = 404
    error_code = "NOT_FOUND"

    def __init__(self, entity: str, entity_id: Any) -> None:
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found.", details={"entity": entity, "id": entity_id})


class ConcurrencyConflictError(ExamCoreError):
    """Optimistic version check failed on a grade or finalize write."""
    status_code = 409
    error_code = "CONFLICT"

    def __init__(self, entity: str, entity_id: Any,
                 expected_version: Optional[int] = None, actual_version: Optional[int] = None) -> None:
        self.entity = entity
        self.entity_id = entity_id
        self.expected_version = expected_version
        self.actual_version = actual_version
        super().__init__(
            f"{entity} {entity_id} was modified concurrently. Reload and retry.",
            details={
                "entity": entity,
                "id": entity_id,
                "expected_version": expected_version,
                "actual_version": actual_version,
            }
        )
