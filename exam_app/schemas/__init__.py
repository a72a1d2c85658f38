from exam_app.schemas.admin import (
    ActiveExamSummarySchema,
    ActivityBatchOutSchema,
    ActivityBatchSchema,
    ActivityEventSchema,
    AttemptSummarySchema,
    ExamResultSchema,
    ManualGradeSchema,
    SweepResultSchema,
)
from exam_app.schemas.attempt import (
    AttemptStateSchema,
    ClientConfigSchema,
    ExamSummarySchema,
    QuestionOutSchema,
    SaveRequestSchema,
    SaveResponseSchema,
    SubmitResponseSchema,
)
from exam_app.schemas.entry import StartAttemptOutSchema, StartAttemptSchema

__all__ = [
    "ActiveExamSummarySchema",
    "ActivityBatchOutSchema",
    "ActivityBatchSchema",
    "ActivityEventSchema",
    "AttemptStateSchema",
    "AttemptSummarySchema",
    "ClientConfigSchema",
    "ExamResultSchema",
    "ExamSummarySchema",
    "ManualGradeSchema",
    "QuestionOutSchema",
    "SaveRequestSchema",
    "SaveResponseSchema",
    "StartAttemptOutSchema",
    "StartAttemptSchema",
    "SubmitResponseSchema",
    "SweepResultSchema",
]
