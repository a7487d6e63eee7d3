import logging
import re
import time
import uuid
from typing import Dict

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

# /exams/3/questions, /attempts/7/answers/12, /grading/answers/5 ...
_RESOURCE_ID = re.compile(r"/(exams|questions|attempts|answers|students)/(\d+)")
_RESOURCE_KEYS = {
    "exams": "exam_id",
    "questions": "question_id",
    "attempts": "attempt_id",
    "answers": "answer_id",
    "students": "student_id",
}


def resource_ids(path: str) -> Dict[str, int]:
    """Engine entity ids named in a request path, keyed like the log fields."""
    return {_RESOURCE_KEYS[kind]: int(value) for kind, value in _RESOURCE_ID.findall(path)}


def _level_for(status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Tags each request with an id and logs it with the exam entities it touched.

    A caller-supplied X-Request-ID is kept so grading actions can be traced
    across services; otherwise a new one is generated.
    """

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id

        method = request.method
        path = request.url.path
        entities = resource_ids(path)
        context = " ".join(f"{key}={value}" for key, value in entities.items())
        start_time = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error(
                f"[{request_id}] {method} {path} failed {context}".rstrip(),
                extra={
                    "request_id": request_id,
                    "method": method,
                    "path": path,
                    "duration_ms": round((time.perf_counter() - start_time) * 1000, 2),
                    "error": str(exc),
                    **entities,
                }
            )
            raise

        duration_ms = round((time.perf_counter() - start_time) * 1000, 2)
        status_code = response.status_code
        logger.log(
            _level_for(status_code),
            f"[{request_id}] {method} {path} - {status_code} ({duration_ms:.1f} ms) {context}".rstrip(),
            extra={
                "request_id": request_id,
                "method": method,
                "path": path,
                "status_code": status_code,
                "duration_ms": duration_ms,
                **entities,
            }
        )

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
