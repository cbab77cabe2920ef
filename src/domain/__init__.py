"""Domain layer: errors, schemas, constants."""

from .errors import ErrorCodes, ServiceError
from .schemas import (
    EvaluationResult,
    FacialAnalysisSummary,
    GeneratedQuestion,
    InterviewResult,
    QuestionSet,
    ResumeSection,
    RunLog,
)

__all__ = [
    "ErrorCodes",
    "ServiceError",
    "GeneratedQuestion",
    "QuestionSet",
    "EvaluationResult",
    "InterviewResult",
    "FacialAnalysisSummary",
    "ResumeSection",
    "RunLog",
]
