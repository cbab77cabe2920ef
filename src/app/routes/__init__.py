"""
FastAPI Routes.

JSON API routes, each module exposing api_router (mounted under /api).
"""

from . import auth, evaluate, facial, interviews, questions, resume, speech

__all__ = ["auth", "evaluate", "facial", "interviews", "questions", "resume", "speech"]
