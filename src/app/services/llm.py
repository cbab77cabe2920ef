"""
Shared plumbing for model-backed services.

- Provider resolution from config (lazy: a missing key fails the request, not startup)
- Provider errors → ServiceError
- Run log bookkeeping
"""

import logging
from pathlib import Path

from src.app.providers import create_llm_provider
from src.app.providers.base import LLMCallParams, LLMError, LLMProvider
from src.core.logging import complete_run_log, save_run_log
from src.domain.errors import ErrorCodes, ServiceError
from src.domain.schemas import RunLog

logger = logging.getLogger(__name__)

QUESTION_PARAMS = LLMCallParams(temperature=0.7, top_k=40, top_p=0.95, max_output_tokens=2048)
EVALUATION_PARAMS = LLMCallParams(temperature=0.3, top_k=40, top_p=0.95, max_output_tokens=1024)
SUMMARY_PARAMS = LLMCallParams()


def resolve_llm_provider(config: dict, provider: LLMProvider | None = None) -> LLMProvider:
    """
    Injected provider, or one built from config.

    Raises:
        ServiceError: LLM_NOT_CONFIGURED (no API key / unknown provider)
    """
    if provider is not None:
        return provider
    try:
        return create_llm_provider(config)
    except LLMError as e:
        raise ServiceError(ErrorCodes.LLM_NOT_CONFIGURED, e.message) from e


async def generate_text(
    provider: LLMProvider,
    prompt: str,
    params: LLMCallParams,
    run_log: RunLog,
) -> str:
    """
    One model call, recorded on the run log.

    Raises:
        ServiceError: UPSTREAM_FAILED
    """
    try:
        result = await provider.generate(prompt, params)
    except LLMError as e:
        raise ServiceError(
            ErrorCodes.UPSTREAM_FAILED,
            e.message,
            provider_code=e.code,
        ) from e

    run_log.model_requested = result.model_requested
    run_log.model_used = result.model_used
    run_log.fallback_triggered = result.fallback_triggered
    run_log.prompt_hash = result.prompt_hash
    return result.text


def finish_run(
    run_log: RunLog,
    logs_dir: Path | None,
    error: ServiceError | None = None,
) -> None:
    """
    Close and persist the run log.

    A failed write is logged; the request outcome does not depend on it.
    """
    if error is None:
        complete_run_log(run_log, success=True)
    else:
        complete_run_log(
            run_log,
            success=False,
            error_code=error.code,
            error_context=error.to_dict(),
        )

    if logs_dir is None:
        return
    try:
        save_run_log(run_log, logs_dir)
    except OSError as e:
        logger.error(f"Failed to save run log {run_log.run_id}: {e}")
