"""
Scoring: bands, evaluation normalization, interview aggregation.

Rules:
- Scores are integers in [0, 100]
- Bands are checked top-down with >= (constants.PERFORMANCE_BANDS etc.)
- Rounding is half-up (Decimal), never banker's rounding
- Parsed model output is untrusted: every field has a default
"""

import random
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from src.core.ids import parse_iso
from src.domain import constants
from src.domain.schemas import EvaluationResult, FacialAnalysisSummary, InterviewResult

# =============================================================================
# Bands
# =============================================================================


def _band(score: float, bands: tuple[tuple[float, str], ...], floor: str) -> str:
    for threshold, label in bands:
        if score >= threshold:
            return label
    return floor


def performance_level_for(score: float) -> str:
    """Excellent / Strong / Good / Satisfactory / Needs Improvement."""
    return _band(score, constants.PERFORMANCE_BANDS, constants.PERFORMANCE_FLOOR)


def recommendation_for(score: float) -> str:
    """Strong Hire / Hire / Maybe / No Hire."""
    return _band(score, constants.RECOMMENDATION_BANDS, constants.RECOMMENDATION_FLOOR)


def round_half_up(value: float, places: int = 0) -> Decimal:
    exponent = Decimal(1).scaleb(-places)
    return Decimal(str(value)).quantize(exponent, rounding=ROUND_HALF_UP)


# =============================================================================
# Evaluation
# =============================================================================


def coerce_score(value: Any, default: int = constants.DEFAULT_SCORE) -> int:
    """
    Model score → int in [0, 100].

    Missing, boolean, non-numeric or NaN values take the default.
    Numeric strings ("85") are accepted. Clamped before rounding half-up,
    so infinities and oversized numbers land on 0 or 100.
    """
    if isinstance(value, bool) or value is None:
        return default
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return default
    if not isinstance(value, int | float):
        return default
    if value != value:  # NaN
        return default
    return int(round_half_up(max(0, min(100, value))))


def fallback_evaluation(rng: random.Random | None = None) -> dict[str, Any]:
    """
    Heuristic evaluation used when model output has no parsable JSON.

    Same shape as the parsed model output (overall_score key).
    """
    rng = rng or random.Random()
    low, high = constants.FALLBACK_SCORE_RANGE
    score = rng.randint(low, high)

    if score >= 80:
        level = "Strong"
    elif score >= 70:
        level = "Good"
    else:
        level = "Satisfactory"

    return {
        "overall_score": score,
        "performance_level": level,
        "strengths": list(constants.FALLBACK_STRENGTHS),
        "improvements": list(constants.FALLBACK_IMPROVEMENTS),
        "detailed_feedback": constants.FALLBACK_FEEDBACK,
        "recommendation": "Hire" if score >= 75 else "Maybe",
    }


def _string_list(value: Any, default: list[str]) -> list[str]:
    if not isinstance(value, list):
        return list(default)
    return [str(v) for v in value]


def _text(value: Any, default: str) -> str:
    if value is None or (isinstance(value, str) and not value.strip()):
        return default
    return str(value)


def normalize_evaluation(data: dict[str, Any], fallback_used: bool = False) -> EvaluationResult:
    """
    Parsed (or fallback) evaluation → EvaluationResult.

    Accepts "overall_score" (prompt contract) or "score".
    """
    raw_score = data.get("overall_score", data.get("score"))

    return EvaluationResult(
        score=coerce_score(raw_score),
        performance_level=_text(
            data.get("performance_level"), constants.DEFAULT_PERFORMANCE_LEVEL
        ),
        strengths=_string_list(data.get("strengths"), constants.DEFAULT_STRENGTHS),
        improvements=_string_list(data.get("improvements"), constants.DEFAULT_IMPROVEMENTS),
        detailed_feedback=_text(data.get("detailed_feedback"), constants.DEFAULT_FEEDBACK),
        recommendation=_text(data.get("recommendation"), constants.DEFAULT_RECOMMENDATION),
        fallback_used=fallback_used,
    )


def combine_response(
    speech_text: str | None = None,
    text_content: str | None = None,
    code_content: str | None = None,
) -> str:
    """
    Join the response channels into one answer.

    Empty channels are dropped; parts are separated by a blank line.
    """
    parts = [
        f"Speech: {speech_text.strip()}" if speech_text and speech_text.strip() else None,
        f"Text: {text_content.strip()}" if text_content and text_content.strip() else None,
        f"Code: {code_content.strip()}" if code_content and code_content.strip() else None,
    ]
    return "\n\n".join(p for p in parts if p)


# =============================================================================
# Interview Aggregation
# =============================================================================


def _scored(questions: list[dict[str, Any]]) -> list[dict[str, Any]]:
    return [q for q in questions if isinstance(q.get("evaluation_score"), int | float)]


def _duration_minutes(interview: dict[str, Any]) -> int | None:
    created_at = interview.get("created_at")
    completed_at = interview.get("completed_at")
    if not created_at or not completed_at:
        return None
    elapsed = parse_iso(completed_at) - parse_iso(created_at)
    return int(elapsed.total_seconds() // 60)


def aggregate_interview(
    interview: dict[str, Any],
    questions: list[dict[str, Any]],
) -> InterviewResult:
    """
    Interview row + question rows → InterviewResult.

    - questions_answered: questions with an evaluation_score
    - average_score: mean of scores (2 places), 0 when none
    - overall_score: average rounded half-up
    - no scored questions: Pending / Under Review
    """
    scored = _scored(questions)
    result = InterviewResult(
        interview_id=interview["id"],
        user_id=interview.get("user_id"),
        total_questions=len(questions),
        questions_answered=len(scored),
        duration_minutes=_duration_minutes(interview),
    )

    if not scored:
        return result

    average = sum(float(q["evaluation_score"]) for q in scored) / len(scored)
    result.average_score = float(round_half_up(average, 2))
    result.overall_score = int(round_half_up(average))
    result.performance_level = performance_level_for(average)
    result.overall_recommendation = recommendation_for(average)
    return result


def _unique(items: list[str]) -> list[str]:
    seen: dict[str, None] = {}
    for item in items:
        seen.setdefault(item, None)
    return list(seen)


def personalized_summary(interview: dict[str, Any], questions: list[dict[str, Any]]) -> str:
    """
    Short narrative of the interview outcome.

    Tiered wording by average score, top 3 unique strengths,
    top 2 unique improvements.
    """
    scored = _scored(questions)
    if not questions:
        return "No interview data available to analyze."
    if not scored:
        return "Your interview responses are still being processed. Please check back shortly."

    average = sum(float(q["evaluation_score"]) for q in scored) / len(scored)
    strengths = _unique([s for q in questions for s in (q.get("strengths") or [])])[:3]
    improvements = _unique([s for q in questions for s in (q.get("improvements") or [])])[:2]

    role = interview.get("job_role", "")
    domain = interview.get("domain", "")

    if average >= 80:
        tier = "excellent"
    elif average >= 70:
        tier = "strong"
    elif average >= 60:
        tier = "solid"
    else:
        tier = "developing"

    summary = f"Your {role} interview for the {domain} domain showed {tier} performance overall. "

    if strengths:
        summary += f"You demonstrated particular strength in {' and '.join(strengths[:2])}."
    if improvements:
        summary += f" Focus on enhancing {improvements[0]} to further strengthen your candidacy."

    if average >= 75:
        readiness = "strong readiness"
    elif average >= 60:
        readiness = "good potential"
    else:
        readiness = "developing skills"
    summary += f" Your responses show {readiness} for {role} roles in {domain}."

    return summary


def overall_feedback(questions: list[dict[str, Any]]) -> str:
    """One-line feedback from the first strength and improvement."""
    strengths = [s for q in questions for s in (q.get("strengths") or [])]
    improvements = [s for q in questions for s in (q.get("improvements") or [])]

    shown = f"strong {strengths[0]}" if strengths else "good communication skills"
    focus = improvements[0] if improvements else "providing more specific examples"
    return (
        f"Based on your {len(questions)} responses, you demonstrated {shown}. "
        f"Key areas for development include {focus}."
    )


def mean_facial_metrics(questions: list[dict[str, Any]]) -> FacialAnalysisSummary | None:
    """
    Mean of per-question facial summaries, weighted by sample count.

    None when no question carries facial data with samples.
    """
    summaries = [
        FacialAnalysisSummary.from_dict(q["facial_analysis"])
        for q in questions
        if q.get("facial_analysis")
    ]
    summaries = [s for s in summaries if s.sample_count > 0]
    if not summaries:
        return None

    total = sum(s.sample_count for s in summaries)
    merged = FacialAnalysisSummary(
        duration_analyzed=round(sum(s.duration_analyzed for s in summaries), 3),
        sample_count=total,
    )
    for group in ("emotions", "confidence", "engagement"):
        target = getattr(merged, group)
        for key in target:
            weighted = sum(getattr(s, group)[key] * s.sample_count for s in summaries)
            target[key] = round(weighted / total, 4)
    return merged
