"""
Data schemas for the interview service.

Rules:
- Wire field names follow the client contract (camelCase for the question
  endpoint, snake_case everywhere else)
- to_dict() is the only serialization path used by routes
"""

import math
from dataclasses import dataclass, field
from typing import Any

from src.domain import constants

# =============================================================================
# Questions
# =============================================================================


@dataclass
class GeneratedQuestion:
    """One generated interview question."""
    question: str
    type: str = "general"  # technical | behavioral | situational | general
    difficulty: str = "medium"  # easy | medium | hard
    focus_area: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any], default_focus: str = "") -> "GeneratedQuestion":
        return cls(
            question=str(data.get("question") or "").strip(),
            type=str(data.get("type") or "general"),
            difficulty=str(data.get("difficulty") or "medium"),
            focus_area=str(data.get("focus_area") or default_focus),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "question": self.question,
            "type": self.type,
            "difficulty": self.difficulty,
            "focus_area": self.focus_area,
        }


@dataclass
class QuestionSet:
    """
    Result of question generation.

    resume_personalized: a stored resume summary was folded into the prompt.
    parsed_from_text: model output had no JSON, questions were recovered from lines.
    """
    questions: list[GeneratedQuestion]
    resume_personalized: bool = False
    parsed_from_text: bool = False

    @property
    def total_questions(self) -> int:
        return len(self.questions)

    def to_response(self) -> dict[str, Any]:
        """Client contract of the generate-questions endpoint."""
        return {
            "questions": [q.to_dict() for q in self.questions],
            "resumePersonalized": self.resume_personalized,
            "totalQuestions": self.total_questions,
        }


# =============================================================================
# Evaluation
# =============================================================================


@dataclass
class EvaluationResult:
    """
    Normalized answer evaluation.

    fallback_used marks the heuristic result (model output was not parsable);
    it is tracked in run logs, not returned to clients.
    """
    score: int
    performance_level: str = constants.DEFAULT_PERFORMANCE_LEVEL
    strengths: list[str] = field(default_factory=lambda: list(constants.DEFAULT_STRENGTHS))
    improvements: list[str] = field(
        default_factory=lambda: list(constants.DEFAULT_IMPROVEMENTS)
    )
    detailed_feedback: str = constants.DEFAULT_FEEDBACK
    recommendation: str = constants.DEFAULT_RECOMMENDATION
    fallback_used: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "score": self.score,
            "performance_level": self.performance_level,
            "strengths": self.strengths,
            "improvements": self.improvements,
            "detailed_feedback": self.detailed_feedback,
            "recommendation": self.recommendation,
        }


# =============================================================================
# Resume Sections
# =============================================================================


@dataclass(frozen=True)
class ResumeSection:
    """
    Resume section definition.

    single: one row per user (upsert on user_id)
    unique_on: extra conflict key for upserts, besides user_id
    """
    name: str
    table: str
    fields: tuple[str, ...]
    single: bool = False
    unique_on: tuple[str, ...] = ()

    @property
    def required_field(self) -> str:
        return self.fields[0]

    @property
    def conflict_keys(self) -> tuple[str, ...]:
        return ("user_id", *self.unique_on)

    def clean(self, values: dict[str, Any]) -> dict[str, Any]:
        """Drop unknown keys."""
        return {k: v for k, v in values.items() if k in self.fields}

    def is_blank(self, values: dict[str, Any]) -> bool:
        value = values.get(self.required_field)
        return value is None or (isinstance(value, str) and not value.strip())


RESUME_SECTIONS: dict[str, ResumeSection] = {
    section.name: section
    for section in (
        ResumeSection(
            name="personal-info",
            table=constants.TABLE_PERSONAL_INFO,
            fields=(
                "full_name", "email", "phone", "address",
                "linkedin_url", "github_url", "portfolio_url",
            ),
            single=True,
        ),
        ResumeSection(
            name="education",
            table=constants.TABLE_EDUCATION,
            fields=(
                "institution_name", "degree", "field_of_study",
                "start_date", "end_date", "gpa", "description",
            ),
        ),
        ResumeSection(
            name="work-experience",
            table=constants.TABLE_WORK_EXPERIENCE,
            fields=(
                "company_name", "position", "location",
                "start_date", "end_date", "is_current", "description",
            ),
        ),
        ResumeSection(
            name="skills",
            table=constants.TABLE_SKILLS,
            fields=("skill_name", "skill_category", "proficiency_level"),
            unique_on=("skill_name",),
        ),
        ResumeSection(
            name="projects",
            table=constants.TABLE_PROJECTS,
            fields=(
                "project_name", "description", "technologies_used",
                "start_date", "end_date", "project_url", "github_url",
            ),
        ),
        ResumeSection(
            name="positions",
            table=constants.TABLE_POSITIONS,
            fields=("position_title", "organization", "start_date", "end_date", "description"),
        ),
        ResumeSection(
            name="achievements",
            table=constants.TABLE_ACHIEVEMENTS,
            fields=("achievement_title", "description", "issuing_organization", "date_achieved"),
        ),
        ResumeSection(
            name="hobbies",
            table=constants.TABLE_HOBBIES,
            fields=("activity_name", "description"),
            unique_on=("activity_name",),
        ),
    )
}

# Keys used in the summary prompt, in prompt order
RESUME_SUMMARY_KEYS: dict[str, str] = {
    "personal-info": "personalInfo",
    "education": "education",
    "work-experience": "workExperience",
    "skills": "skills",
    "projects": "projects",
    "positions": "positions",
    "achievements": "achievements",
    "hobbies": "hobbies",
}


# =============================================================================
# Interview Results
# =============================================================================


@dataclass
class InterviewResult:
    """Aggregated interview performance (one per interview)."""
    interview_id: str
    user_id: str | None
    overall_score: int = 0
    performance_level: str = constants.PENDING_PERFORMANCE
    overall_recommendation: str = constants.PENDING_RECOMMENDATION
    total_questions: int = 0
    questions_answered: int = 0
    average_score: float = 0.0
    duration_minutes: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "interview_id": self.interview_id,
            "user_id": self.user_id,
            "overall_score": self.overall_score,
            "performance_level": self.performance_level,
            "overall_recommendation": self.overall_recommendation,
            "total_questions": self.total_questions,
            "questions_answered": self.questions_answered,
            "average_score": self.average_score,
            "duration_minutes": self.duration_minutes,
        }


# =============================================================================
# Facial Analysis
# =============================================================================

EMOTION_KEYS = ("neutral", "happy", "surprised", "concerned", "focused")
CONFIDENCE_KEYS = ("eye_contact_ratio", "head_stability", "expression_consistency")
ENGAGEMENT_KEYS = ("attention_score", "enthusiasm_level", "stress_indicators")


@dataclass
class FacialAnalysisSummary:
    """Running means of per-frame facial metrics."""
    emotions: dict[str, float] = field(default_factory=lambda: dict.fromkeys(EMOTION_KEYS, 0.0))
    confidence: dict[str, float] = field(
        default_factory=lambda: dict.fromkeys(CONFIDENCE_KEYS, 0.0)
    )
    engagement: dict[str, float] = field(
        default_factory=lambda: dict.fromkeys(ENGAGEMENT_KEYS, 0.0)
    )
    duration_analyzed: float = 0.0
    sample_count: int = 0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "FacialAnalysisSummary":
        """
        Raises:
            ValueError: a group is not a mapping, or a value is not a finite number
        """
        def _number(value: Any) -> float:
            if value is None:
                return 0.0
            if isinstance(value, bool) or not isinstance(value, int | float):
                raise ValueError(f"expected a number, got {value!r}")
            if not math.isfinite(value):
                raise ValueError(f"expected a finite number, got {value!r}")
            return float(value)

        def _group(key: str, names: tuple[str, ...]) -> dict[str, float]:
            raw = data.get(key) or {}
            if not isinstance(raw, dict):
                raise ValueError(f"{key} must be an object")
            return {name: _number(raw.get(name)) for name in names}

        return cls(
            emotions=_group("emotions", EMOTION_KEYS),
            confidence=_group("confidence", CONFIDENCE_KEYS),
            engagement=_group("engagement", ENGAGEMENT_KEYS),
            duration_analyzed=_number(data.get("duration_analyzed")),
            sample_count=int(_number(data.get("sample_count"))),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "emotions": dict(self.emotions),
            "confidence": dict(self.confidence),
            "engagement": dict(self.engagement),
            "duration_analyzed": self.duration_analyzed,
            "sample_count": self.sample_count,
        }


# =============================================================================
# Run Logs
# =============================================================================


@dataclass
class WarningLog:
    """
    Warning event.

    Required context: level, code, operation, message
    """
    level: str = "warning"
    code: str = ""
    operation: str = ""
    message: str = ""
    detail: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "level": self.level,
            "code": self.code,
            "operation": self.operation,
            "message": self.message,
            "detail": self.detail,
        }


@dataclass
class RunLog:
    """
    Run log of one model-backed operation.

    operation: generate_questions | evaluate_response | resume_summary
    """
    run_id: str
    operation: str
    started_at: str  # ISO 8601
    finished_at: str | None = None
    result: str = "pending"  # pending, success, failed

    subject_id: str | None = None  # user or interview the run belongs to

    # Model tracking
    model_requested: str | None = None
    model_used: str | None = None
    fallback_triggered: bool = False
    prompt_hash: str | None = None

    warnings: list[WarningLog] = field(default_factory=list)

    error_code: str | None = None
    error_context: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "run_id": self.run_id,
            "operation": self.operation,
            "started_at": self.started_at,
            "finished_at": self.finished_at,
            "result": self.result,
            "subject_id": self.subject_id,
            "model_requested": self.model_requested,
            "model_used": self.model_used,
            "fallback_triggered": self.fallback_triggered,
            "prompt_hash": self.prompt_hash,
            "warnings": [w.to_dict() for w in self.warnings],
            "error_code": self.error_code,
            "error_context": self.error_context,
        }
