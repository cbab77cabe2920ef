"""
Application Services.

Role:
- questions: interview parameters → generated questions
- evaluate: answer → scored feedback
- resume: resume section CRUD + generated summary
- transcribe: recorded audio → text
- auth: users + auto-login tokens
- interviews: interview session lifecycle + results
"""

from .auth import AuthService
from .evaluate import EvaluationService
from .interviews import InterviewService
from .questions import QuestionService
from .resume import ResumeService, ResumeSummaryService
from .transcribe import TranscriptionService

__all__ = [
    "AuthService",
    "EvaluationService",
    "InterviewService",
    "QuestionService",
    "ResumeService",
    "ResumeSummaryService",
    "TranscriptionService",
]
