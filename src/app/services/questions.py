"""
Question Service: interview parameters → generated questions.

- Optional personalization from the user's stored resume summary
- JSON reply parsed first; plain-text numbered/question lines as fallback
- Result truncated to the requested count; empty is an error
"""

import logging
from pathlib import Path
from typing import Any

from src.app.providers.base import LLMProvider
from src.app.services.llm import (
    QUESTION_PARAMS,
    finish_run,
    generate_text,
    resolve_llm_provider,
)
from src.core.logging import create_run_log, emit_warning
from src.core.model_output import extract_json_object, parse_question_lines
from src.core.store import RecordStore
from src.domain import constants
from src.domain.errors import ErrorCodes, ServiceError
from src.domain.schemas import GeneratedQuestion, QuestionSet

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("jobRole", "domain", "experienceLevel", "interviewType")


def build_question_prompt(
    job_role: str,
    domain: str,
    experience_level: str,
    interview_type: str,
    num_questions: int,
    additional_constraints: str | None = None,
    resume_summary: str | None = None,
) -> str:
    """Generation prompt. Optional blocks are left out when empty."""
    requirements = (
        f"- Additional Requirements: {additional_constraints}\n" if additional_constraints else ""
    )

    background = ""
    personalize = ""
    if resume_summary:
        background = (
            "**Candidate's Background:**\n"
            f'Based on the candidate\'s resume summary: "{resume_summary}"\n\n'
            "Please tailor the questions to be relevant to their background, experience, "
            "and skills mentioned in their resume. Reference specific experiences, projects, "
            "or skills from their background when appropriate.\n"
        )
        personalize = (
            "6. Personalize questions based on the candidate's resume summary provided above\n"
        )

    return (
        "You are an expert interview question generator. "
        f"Generate {num_questions} high-quality interview questions for the following position:\n\n"
        "**Position Details:**\n"
        f"- Job Role: {job_role}\n"
        f"- Domain: {domain}\n"
        f"- Experience Level: {experience_level}\n"
        f"- Question Type: {interview_type}\n"
        f"{requirements}\n"
        f"{background}\n"
        "**Instructions:**\n"
        f"1. Generate exactly {num_questions} questions\n"
        f"2. Questions should be appropriate for {experience_level} level candidates\n"
        f"3. Focus on {interview_type} type questions\n"
        "4. Make questions progressively challenging\n"
        "5. Include a mix of technical, behavioral, and scenario-based questions as appropriate\n"
        f"{personalize}"
        "7. Each question should be detailed and specific\n"
        "8. Avoid generic or overly simple questions\n\n"
        "**Question Types to Include:**\n"
        "- Technical knowledge and problem-solving\n"
        "- Past experience and achievements\n"
        "- Situational and behavioral scenarios\n"
        "- Domain-specific expertise\n"
        "- Leadership and teamwork (if applicable)\n\n"
        "Return the response in the following JSON format:\n"
        "{\n"
        '  "questions": [\n'
        "    {\n"
        '      "question": "Detailed question text here",\n'
        '      "type": "technical|behavioral|situational",\n'
        '      "difficulty": "easy|medium|hard",\n'
        '      "focus_area": "specific skill or competency being tested"\n'
        "    }\n"
        "  ]\n"
        "}\n\n"
        "Ensure all questions are relevant, engaging, and help assess the candidate's "
        f"suitability for the {job_role} position in {domain}.\n"
    )


def coerce_num_questions(value: Any, default: int = constants.DEFAULT_NUM_QUESTIONS) -> int:
    """
    numQuestions → positive int.

    Raises:
        ServiceError: INVALID_FIELD_VALUE
    """
    if value is None:
        return default
    try:
        number = 0 if isinstance(value, bool) else int(value)
    except (TypeError, ValueError):
        number = 0
    if number < 1:
        raise ServiceError(
            ErrorCodes.INVALID_FIELD_VALUE,
            "numQuestions must be a positive integer",
            value=value,
        )
    return number


class QuestionService:
    """
    Question generation service.

    Usage:
        service = QuestionService(config, store)
        question_set = await service.generate(payload)
    """

    def __init__(
        self,
        config: dict,
        store: RecordStore,
        provider: LLMProvider | None = None,
        logs_dir: Path | None = None,
    ):
        """
        Args:
            config: settings (ai.llm, interview)
            store: record store (resume summaries)
            provider: LLM Provider (None: built from config on first use)
            logs_dir: run log directory (None: run logs not saved)
        """
        self.config = config
        self.store = store
        self._provider = provider
        self.logs_dir = logs_dir

    @property
    def default_num_questions(self) -> int:
        return int(
            self.config.get("interview", {}).get(
                "default_num_questions", constants.DEFAULT_NUM_QUESTIONS
            )
        )

    def get_resume_summary(self, user_id: str | None) -> str | None:
        """Stored summary text for the user, or None."""
        if not user_id:
            return None
        row = self.store.get(constants.TABLE_RESUME_SUMMARY, user_id=user_id)
        if not row or not row.get("summary_text"):
            logger.info(f"No resume summary found for user {user_id}")
            return None
        summary: str = row["summary_text"]
        logger.info(f"Resume summary found for user {user_id}: {summary[:100]}...")
        return summary

    async def generate(self, payload: dict[str, Any]) -> QuestionSet:
        """
        Generate questions from a request payload.

        Args:
            payload: {jobRole, domain, experienceLevel, interviewType,
                      additionalConstraints?, numQuestions?, userId?}

        Returns:
            QuestionSet

        Raises:
            ServiceError: MISSING_REQUIRED_FIELD, INVALID_FIELD_VALUE,
                LLM_NOT_CONFIGURED, UPSTREAM_FAILED,
                INVALID_QUESTIONS_FORMAT, NO_QUESTIONS_GENERATED
        """
        missing = [f for f in REQUIRED_FIELDS if not payload.get(f)]
        if missing:
            raise ServiceError(
                ErrorCodes.MISSING_REQUIRED_FIELD,
                "Missing required fields",
                fields=missing,
            )

        num_questions = coerce_num_questions(
            payload.get("numQuestions"), default=self.default_num_questions
        )
        job_role = str(payload["jobRole"])
        domain = str(payload["domain"])
        user_id = payload.get("userId")

        logger.info(
            f"Generating {num_questions} questions: role={job_role}, domain={domain}, "
            f"level={payload['experienceLevel']}, type={payload['interviewType']}"
        )

        resume_summary = self.get_resume_summary(user_id)
        provider = resolve_llm_provider(self.config, self._provider)

        prompt = build_question_prompt(
            job_role=job_role,
            domain=domain,
            experience_level=str(payload["experienceLevel"]),
            interview_type=str(payload["interviewType"]),
            num_questions=num_questions,
            additional_constraints=payload.get("additionalConstraints"),
            resume_summary=resume_summary,
        )

        run_log = create_run_log("generate_questions", subject_id=user_id)
        try:
            text = await generate_text(provider, prompt, QUESTION_PARAMS, run_log)
            question_set = self._parse(text, num_questions, domain, run_log)
        except ServiceError as e:
            finish_run(run_log, self.logs_dir, error=e)
            raise

        question_set.resume_personalized = bool(resume_summary)
        finish_run(run_log, self.logs_dir)
        logger.info(f"Successfully generated {question_set.total_questions} questions")
        return question_set

    def _parse(self, text: str, num_questions: int, domain: str, run_log: Any) -> QuestionSet:
        data = extract_json_object(text)

        if data is None:
            logger.warning("No JSON object in question reply, parsing plain text")
            emit_warning(
                run_log,
                code="QUESTIONS_PARSED_FROM_TEXT",
                message="Model reply had no JSON object; questions recovered from lines",
                detail=text[:500],
            )
            questions = parse_question_lines(text, num_questions, domain)
            parsed_from_text = True
        else:
            raw = data.get("questions")
            if not isinstance(raw, list):
                raise ServiceError(
                    ErrorCodes.INVALID_QUESTIONS_FORMAT,
                    "Invalid questions format in API response",
                )
            questions = [
                GeneratedQuestion.from_dict(item, default_focus=domain)
                if isinstance(item, dict)
                else GeneratedQuestion(question=str(item), focus_area=domain)
                for item in raw[:num_questions]
            ]
            parsed_from_text = False

        questions = [q for q in questions if q.question]
        if not questions:
            raise ServiceError(ErrorCodes.NO_QUESTIONS_GENERATED, "No questions generated")

        return QuestionSet(questions=questions, parsed_from_text=parsed_from_text)
