"""
Interview Service: interview session lifecycle.

Flow:
1. create: generate questions → interviews row + interview_questions rows
2. start question n: stamp started_at, hand out the time limit
3. answer question n: combine response channels → evaluate → store
4. complete: stamp completed_at → aggregate results

Rules:
- question_number is 1-based and dense
- An answer is stored even when its evaluation fails (left unscored)
- interview_results holds one row per interview (upsert)
"""

import logging
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

from src.app.services.evaluate import EvaluationService
from src.app.services.questions import QuestionService
from src.core.facial import summarize_frames
from src.core.ids import parse_iso
from src.core.scoring import (
    aggregate_interview,
    combine_response,
    mean_facial_metrics,
    overall_feedback,
    personalized_summary,
)
from src.core.store import RecordStore, Row
from src.core.timer import QuestionTimer
from src.domain import constants
from src.domain.errors import ErrorCodes, ServiceError
from src.domain.schemas import FacialAnalysisSummary

logger = logging.getLogger(__name__)


def normalize_facial_analysis(data: Any) -> dict[str, Any] | None:
    """
    Client facial data → stored summary.

    Accepts an aggregated summary, or {"frames": [...], "duration_analyzed"?}
    with raw landmark frames.

    Raises:
        ServiceError: INVALID_FIELD_VALUE
    """
    if not data:
        return None
    if not isinstance(data, dict):
        raise ServiceError(ErrorCodes.INVALID_FIELD_VALUE, "facialAnalysis must be an object")
    try:
        frames = data.get("frames")
        if isinstance(frames, list):
            return summarize_frames(frames, data.get("duration_analyzed")).to_dict()
        return FacialAnalysisSummary.from_dict(data).to_dict()
    except ValueError as e:
        raise ServiceError(
            ErrorCodes.INVALID_FIELD_VALUE, f"Invalid facialAnalysis: {e}", field="facialAnalysis"
        ) from e


def response_parts(payload: dict[str, Any]) -> tuple[str | None, str | None, str | None]:
    """
    speechText, textContent, codeContent from an answer payload.

    Raises:
        ServiceError: INVALID_FIELD_VALUE (a part is not a string)
    """
    parts = []
    for name in ("speechText", "textContent", "codeContent"):
        value = payload.get(name)
        if value is not None and not isinstance(value, str):
            raise ServiceError(
                ErrorCodes.INVALID_FIELD_VALUE, f"{name} must be a string", field=name
            )
        parts.append(value)
    return parts[0], parts[1], parts[2]


class InterviewService:
    """
    Interview session service.

    Usage:
        service = InterviewService(config, store, questions, evaluator)
        session = await service.create_interview(payload)
        await service.answer_question(session["interview"]["id"], 1, {"speechText": "..."})
        results = service.complete_interview(session["interview"]["id"])
    """

    def __init__(
        self,
        config: dict,
        store: RecordStore,
        question_service: QuestionService,
        evaluation_service: EvaluationService,
        clock: Callable[[], datetime] | None = None,
    ):
        self.config = config
        self.store = store
        self.questions = question_service
        self.evaluator = evaluation_service
        self._clock = clock or (lambda: datetime.now(UTC))

    @property
    def question_time_limit(self) -> int:
        return int(
            self.config.get("interview", {}).get(
                "question_time_limit", constants.DEFAULT_QUESTION_TIME_LIMIT
            )
        )

    # =========================================================================
    # Lookup
    # =========================================================================

    def _interview(self, interview_id: str) -> Row:
        row = self.store.get(constants.TABLE_INTERVIEWS, id=interview_id)
        if row is None:
            raise ServiceError(
                ErrorCodes.NOT_FOUND,
                "Interview not found",
                interview_id=interview_id,
            )
        return row

    def _questions(self, interview_id: str) -> list[Row]:
        return self.store.select(
            constants.TABLE_INTERVIEW_QUESTIONS,
            order_by="question_number",
            interview_id=interview_id,
        )

    def _question(self, interview_id: str, number: int) -> Row:
        row = self.store.get(
            constants.TABLE_INTERVIEW_QUESTIONS,
            interview_id=interview_id,
            question_number=number,
        )
        if row is None:
            raise ServiceError(
                ErrorCodes.NOT_FOUND,
                f"Question {number} not found",
                interview_id=interview_id,
            )
        return row

    def get_interview(self, interview_id: str) -> dict[str, Any]:
        """
        Raises:
            ServiceError: NOT_FOUND
        """
        interview = self._interview(interview_id)
        return {"interview": interview, "questions": self._questions(interview_id)}

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def create_interview(self, payload: dict[str, Any]) -> dict[str, Any]:
        """
        Create an interview with generated questions.

        Questions are generated before anything is stored.

        Raises:
            ServiceError: MISSING_REQUIRED_FIELD and question generation errors
        """
        user_id = payload.get("userId")
        if not user_id:
            raise ServiceError(
                ErrorCodes.MISSING_REQUIRED_FIELD,
                "Missing required fields",
                fields=["userId"],
            )

        question_set = await self.questions.generate(payload)

        interview = self.store.insert(
            constants.TABLE_INTERVIEWS,
            {
                "user_id": user_id,
                "job_role": payload["jobRole"],
                "domain": payload["domain"],
                "experience_level": payload["experienceLevel"],
                "interview_type": payload["interviewType"],
                "additional_constraints": payload.get("additionalConstraints"),
                "resume_personalized": question_set.resume_personalized,
                "status": constants.INTERVIEW_STATUS_IN_PROGRESS,
                "completed_at": None,
            },
        )

        questions = [
            self.store.insert(
                constants.TABLE_INTERVIEW_QUESTIONS,
                {
                    "interview_id": interview["id"],
                    "question_number": number,
                    "question_text": question.question,
                    "question_type": question.type,
                    "difficulty": question.difficulty,
                    "focus_area": question.focus_area,
                    "time_limit": self.question_time_limit,
                },
            )
            for number, question in enumerate(question_set.questions, start=1)
        ]

        logger.info(
            f"Interview {interview['id']} created for user {user_id} "
            f"with {len(questions)} questions"
        )
        return {"interview": interview, "questions": questions}

    def start_question(self, interview_id: str, number: int) -> dict[str, Any]:
        """
        Mark a question as served. Restarting keeps the first started_at.

        Raises:
            ServiceError: NOT_FOUND
        """
        self._interview(interview_id)
        question = self._question(interview_id, number)

        if not question.get("started_at"):
            question = self.store.update(
                constants.TABLE_INTERVIEW_QUESTIONS,
                question["id"],
                {"started_at": self._clock().isoformat()},
            ) or question

        return {
            "question": question,
            "time_limit": question.get("time_limit") or self.question_time_limit,
            "started_at": question["started_at"],
            "timer": self._timer(question).to_dict(),
        }

    def _timer(self, question: Row) -> QuestionTimer:
        """Countdown on wall-clock seconds, started at the question's started_at."""
        timer = QuestionTimer(
            question.get("time_limit") or self.question_time_limit,
            clock=lambda: self._clock().timestamp(),
        )
        if question.get("started_at"):
            timer.start(at=parse_iso(question["started_at"]).timestamp())
        return timer

    def question_timer(self, interview_id: str, number: int) -> dict[str, Any]:
        """
        Current countdown state of a question.

        Raises:
            ServiceError: NOT_FOUND
        """
        self._interview(interview_id)
        return self._timer(self._question(interview_id, number)).to_dict()

    def _elapsed_seconds(self, question: Row, payload: dict[str, Any]) -> float | None:
        started_at = question.get("started_at")
        if started_at:
            return round((self._clock() - parse_iso(started_at)).total_seconds(), 3)
        reported = payload.get("elapsedSeconds")
        if isinstance(reported, int | float) and not isinstance(reported, bool):
            return float(reported)
        return None

    async def answer_question(
        self,
        interview_id: str,
        number: int,
        payload: dict[str, Any],
    ) -> dict[str, Any]:
        """
        Store and evaluate an answer.

        Args:
            payload: {speechText?, textContent?, codeContent?, responseLanguage?,
                      facialAnalysis?, elapsedSeconds?}

        Returns:
            {"question": stored row, "evaluation": evaluation dict}

        Raises:
            ServiceError: NOT_FOUND, INVALID_FIELD_VALUE (completed), EMPTY_ANSWER,
                evaluation errors (answer stored unscored)
        """
        interview = self._interview(interview_id)
        if interview.get("status") == constants.INTERVIEW_STATUS_COMPLETED:
            raise ServiceError(
                ErrorCodes.INVALID_FIELD_VALUE,
                "Interview already completed",
                interview_id=interview_id,
            )
        question = self._question(interview_id, number)

        speech_text, text_content, code_content = response_parts(payload)
        answer = combine_response(speech_text, text_content, code_content)
        if not answer:
            raise ServiceError(ErrorCodes.EMPTY_ANSWER, "Answer is empty")

        elapsed = self._elapsed_seconds(question, payload)
        if question.get("started_at"):
            timed_out = self._timer(question).is_expired
        else:
            time_limit = question.get("time_limit") or self.question_time_limit
            timed_out = elapsed is not None and elapsed >= time_limit
        answer_fields = {
            "user_response": answer,
            "user_text_response": text_content or None,
            "user_code_response": code_content or None,
            "response_language": payload.get("responseLanguage") or None,
            "facial_analysis": normalize_facial_analysis(payload.get("facialAnalysis")),
            "elapsed_seconds": elapsed,
            "timed_out": bool(payload.get("timedOut")) or timed_out,
            "answered_at": self._clock().isoformat(),
        }

        try:
            evaluation = await self.evaluator.evaluate(
                {
                    "question": question["question_text"],
                    "answer": answer,
                    "jobRole": interview["job_role"],
                    "domain": interview["domain"],
                    "experienceLevel": interview.get("experience_level"),
                },
                subject_id=interview_id,
            )
        except ServiceError:
            self.store.update(constants.TABLE_INTERVIEW_QUESTIONS, question["id"], answer_fields)
            logger.error(f"Evaluation failed for interview {interview_id} question {number}")
            raise

        stored = self.store.update(
            constants.TABLE_INTERVIEW_QUESTIONS,
            question["id"],
            {
                **answer_fields,
                "evaluation_score": evaluation.score,
                "evaluation_feedback": evaluation.detailed_feedback,
                "strengths": evaluation.strengths,
                "improvements": evaluation.improvements,
                "performance_level": evaluation.performance_level,
                "recommendation": evaluation.recommendation,
                "evaluation_fallback": evaluation.fallback_used,
            },
        )
        return {"question": stored, "evaluation": evaluation.to_dict()}

    def complete_interview(self, interview_id: str) -> dict[str, Any]:
        """
        Close the interview and compute results. Completing twice keeps
        the first completed_at.

        Raises:
            ServiceError: NOT_FOUND
        """
        interview = self._interview(interview_id)
        if interview.get("status") != constants.INTERVIEW_STATUS_COMPLETED:
            self.store.update(
                constants.TABLE_INTERVIEWS,
                interview_id,
                {
                    "status": constants.INTERVIEW_STATUS_COMPLETED,
                    "completed_at": self._clock().isoformat(),
                },
            )
            logger.info(f"Interview {interview_id} completed")
        return self.compute_results(interview_id)

    def compute_results(self, interview_id: str) -> dict[str, Any]:
        """
        Aggregate, store (one row per interview) and return results.

        Raises:
            ServiceError: NOT_FOUND
        """
        interview = self._interview(interview_id)
        questions = self._questions(interview_id)

        result = aggregate_interview(interview, questions)
        stored = self.store.upsert(
            constants.TABLE_INTERVIEW_RESULTS,
            result.to_dict(),
            on_conflict=("interview_id",),
        )

        facial = mean_facial_metrics(questions)
        return {
            **stored,
            "status": interview.get("status"),
            "summary": personalized_summary(interview, questions),
            "overall_feedback": overall_feedback(questions),
            "facial_analysis": facial.to_dict() if facial else None,
            "questions": questions,
        }
