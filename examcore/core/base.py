# Import every model so that Base.metadata and relationship lookups see the full schema
from examcore.core.database import Base  # noqa: F401
from examcore.models.course import Course  # noqa: F401
from examcore.models.exam_session import ExamSession  # noqa: F401
from examcore.models.exam import Exam  # noqa: F401
from examcore.models.question import Question  # noqa: F401
from examcore.models.exam_attempt import ExamAttempt  # noqa: F401
from examcore.models.answer import Answer  # noqa: F401
from examcore.models.exam_result import ExamResult  # noqa: F401
from examcore.models.notification import Notification  # noqa: F401
