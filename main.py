from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from examcore.core.config import settings
from examcore.core.exceptions import ExamCoreError
from examcore.core.logging import configure_logging
from examcore.endpoints import exam, attempt, grading, student, course
from fastapi.exceptions import RequestValidationError
from examcore.middleware.exceptions import examcore_exception_handler, global_exception_handler, validation_exception_handler
from examcore.middleware.logging import RequestLoggingMiddleware
from examcore.services.notification import notification_service

configure_logging()

app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    openapi_url=f"{settings.API_V1_STR}/openapi.json"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

app.add_middleware(GZipMiddleware, minimum_size=1000)
app.add_middleware(RequestLoggingMiddleware)

app.add_exception_handler(ExamCoreError, examcore_exception_handler)
app.add_exception_handler(Exception, global_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)

app.include_router(course.router, tags=["Courses"])
app.include_router(exam.router, prefix="/exams", tags=["Exams"])
app.include_router(attempt.router, prefix="/attempts", tags=["Attempts"])
app.include_router(grading.router, prefix="/grading", tags=["Grading"])
app.include_router(student.router, prefix="/students", tags=["Students"])

@app.on_event("startup")
async def startup_event():
    if settings.NOTIFICATIONS_ENABLED:
        notification_service.register_handlers()

@app.on_event("shutdown")
async def shutdown_event():
    notification_service.unregister_handlers()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
