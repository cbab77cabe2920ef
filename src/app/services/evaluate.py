"""
Evaluation Service: question + answer → scored feedback.

- Reply JSON parsed from the first "{" to the last "}"
- Unparsable reply → heuristic fallback (random score in 60..90), logged as
  EVALUATION_FALLBACK_USED
- Every field normalized with defaults
"""

import logging
import random
from pathlib import Path
from typing import Any

from src.app.providers.base import LLMProvider
from src.app.services.llm import (
    EVALUATION_PARAMS,
    finish_run,
    generate_text,
    resolve_llm_provider,
)
from src.core.logging import create_run_log, emit_warning
from src.core.model_output import extract_json_object
from src.core.scoring import fallback_evaluation, normalize_evaluation
from src.domain import constants
from src.domain.errors import ErrorCodes, ServiceError
from src.domain.schemas import EvaluationResult

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("question", "answer", "jobRole", "domain")


def build_evaluation_prompt(
    question: str,
    answer: str,
    job_role: str,
    domain: str,
    experience_level: str,
) -> str:
    return (
        f"Evaluate this interview response for a {job_role} position in {domain} "
        f"({experience_level} level):\n\n"
        f"Question: {question}\n"
        f"Answer: {answer}\n\n"
        "Provide a JSON response with this structure:\n"
        "{\n"
        '  "overall_score": <number 0-100>,\n'
        '  "performance_level": "<Excellent|Strong|Good|Satisfactory|Needs Improvement>",\n'
        '  "strengths": ["strength1", "strength2", "strength3"],\n'
        '  "improvements": ["improvement1", "improvement2"],\n'
        '  "detailed_feedback": "comprehensive feedback text",\n'
        '  "recommendation": "<Strong Hire|Hire|Maybe|No Hire>"\n'
        "}"
    )


class EvaluationService:
    """
    Answer evaluation service.

    Usage:
        service = EvaluationService(config)
        result = await service.evaluate(payload)
    """

    def __init__(
        self,
        config: dict,
        provider: LLMProvider | None = None,
        logs_dir: Path | None = None,
        rng: random.Random | None = None,
    ):
        """
        Args:
            config: settings (ai.llm)
            provider: LLM Provider (None: built from config on first use)
            logs_dir: run log directory (None: run logs not saved)
            rng: random source of the heuristic fallback
        """
        self.config = config
        self._provider = provider
        self.logs_dir = logs_dir
        self.rng = rng or random.Random()

    async def evaluate(
        self,
        payload: dict[str, Any],
        subject_id: str | None = None,
    ) -> EvaluationResult:
        """
        Evaluate one answer.

        Args:
            payload: {question, answer, jobRole, domain, experienceLevel?}
            subject_id: interview id for the run log

        Returns:
            EvaluationResult (fallback_used set when the heuristic applied)

        Raises:
            ServiceError: MISSING_REQUIRED_FIELD, LLM_NOT_CONFIGURED, UPSTREAM_FAILED
        """
        missing = [f for f in REQUIRED_FIELDS if not payload.get(f)]
        if missing:
            raise ServiceError(
                ErrorCodes.MISSING_REQUIRED_FIELD,
                "Missing required fields",
                fields=missing,
            )

        provider = resolve_llm_provider(self.config, self._provider)
        prompt = build_evaluation_prompt(
            question=str(payload["question"]),
            answer=str(payload["answer"]),
            job_role=str(payload["jobRole"]),
            domain=str(payload["domain"]),
            experience_level=str(
                payload.get("experienceLevel") or constants.DEFAULT_EXPERIENCE_LEVEL
            ),
        )

        run_log = create_run_log("evaluate_response", subject_id=subject_id)
        try:
            text = await generate_text(provider, prompt, EVALUATION_PARAMS, run_log)
        except ServiceError as e:
            finish_run(run_log, self.logs_dir, error=e)
            raise

        data = extract_json_object(text)
        fallback_used = data is None
        if fallback_used:
            logger.warning("Evaluation reply had no parsable JSON, using heuristic score")
            emit_warning(
                run_log,
                code="EVALUATION_FALLBACK_USED",
                message="Model reply had no parsable JSON; heuristic evaluation returned",
                detail=text[:500],
            )
            data = fallback_evaluation(self.rng)

        result = normalize_evaluation(data, fallback_used=fallback_used)
        finish_run(run_log, self.logs_dir)
        logger.info(f"Evaluation complete: score={result.score}, fallback={fallback_used}")
        return result
