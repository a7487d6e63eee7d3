from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from examcore.core.exceptions import ExamCoreError
from examcore.schemas.response import ErrorResponse, ErrorDetail
from datetime import datetime, timezone
import logging
import uuid

logger = logging.getLogger(__name__)

def _get_error_code(status_code: int) -> str:
    code_map = {
        400: "BAD_REQUEST",
        404: "NOT_FOUND",
        405: "METHOD_NOT_ALLOWED",
        409: "CONFLICT",
        422: "VALIDATION_ERROR",
        500: "INTERNAL_SERVER_ERROR",
    }
    return code_map.get(status_code, f"HTTP_{status_code}")

def _error_response(request: Request, request_id: str, code: str, message: str, details=None) -> dict:
    return ErrorResponse(
        error=ErrorDetail(code=code, message=message, details=details),
        timestamp=datetime.now(timezone.utc).isoformat(),
        path=str(request.url),
        request_id=request_id
    ).model_dump()

async def examcore_exception_handler(request: Request, exc: ExamCoreError):
    request_id = getattr(request.state, "request_id", None) or str(uuid.uuid4())
    content = _error_response(request, request_id, exc.error_code, exc.message, exc.details or None)
    log_level = logging.INFO if exc.status_code == 404 else logging.WARNING
    logger.log(log_level, f"[{request_id}] {exc.error_code}: {exc.message}", extra={"request_id": request_id})
    return JSONResponse(status_code=exc.status_code, content=content)

async def validation_exception_handler(request: Request, exc: RequestValidationError):
    request_id = getattr(request.state, "request_id", None) or str(uuid.uuid4())
    content = _error_response(
        request, request_id, "VALIDATION_ERROR", "Request validation failed",
        {"validation_errors": [
            {"loc": list(e.get("loc", ())), "msg": e.get("msg"), "type": e.get("type")} for e in exc.errors()
        ]}
    )
    logger.warning(f"[{request_id}] Validation error: {exc.errors()}", extra={"request_id": request_id})
    return JSONResponse(status_code=422, content=content)

async def global_exception_handler(request: Request, exc: Exception):
    request_id = getattr(request.state, "request_id", None) or str(uuid.uuid4())

    if isinstance(exc, HTTPException):
        content = _error_response(
            request, request_id, _get_error_code(exc.status_code),
            exc.detail if isinstance(exc.detail, str) else str(exc.detail)
        )
        logger.warning(f"[{request_id}] HTTP {exc.status_code}: {exc.detail}", extra={"request_id": request_id})
        return JSONResponse(status_code=exc.status_code, content=content)

    content = _error_response(
        request, request_id, "INTERNAL_SERVER_ERROR", "An unexpected error occurred",
        {"error_type": type(exc).__name__}
    )
    logger.error(f"[{request_id}] Unhandled exception: {exc}", exc_info=True, extra={"request_id": request_id})
    return JSONResponse(status_code=500, content=content)
