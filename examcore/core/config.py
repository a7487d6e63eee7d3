from pydantic_settings import BaseSettings
from typing import Optional, List

class Settings(BaseSettings):
    PROJECT_NAME: str = "examcore"
    VERSION: str = "1.0.0"
    API_V1_STR: str = "/api/v1"

    # CORS
    ALLOWED_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:3001",
        "http://127.0.0.1:3000",
        "http://localhost:5173",
    ]

    # Database Configuration
    DATABASE_HOST: Optional[str] = None
    DATABASE_PORT: Optional[str] = None
    DATABASE_USER: Optional[str] = None
    DATABASE_PASSWORD: Optional[str] = None
    DATABASE_NAME: Optional[str] = None

    DATABASE_URL: str = "sqlite:///./examcore.db"
    TEST_DATABASE_URL: Optional[str] = None

    def __init__(self, **data):
        super().__init__(**data)
        if self.DATABASE_HOST and self.DATABASE_NAME:
            self.DATABASE_URL = (
                f'postgresql://{self.DATABASE_USER}:{self.DATABASE_PASSWORD}'
                f'@{self.DATABASE_HOST}:{self.DATABASE_PORT or "5432"}/{self.DATABASE_NAME}'
            )

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"

    # Notification trigger: stores an in-app notification when an exam is graded
    NOTIFICATIONS_ENABLED: bool = True

    # Aggregation
    NORMALIZED_GRADE_SCALE: float = 20.0
    COURSE_PASS_AVERAGE: float = 10.0
    SEMESTER_VALIDATION_RATIO: float = 0.8
    DEFAULT_COURSE_CREDITS: int = 3

    class Config:
        env_file = ".env"

settings = Settings()
