"""
Run logging: run log lifecycle, warnings, persistence.

Rules:
- Warning context: level, code, operation, message
- One JSON file per run: logs_dir/run_{run_id}.json (atomic write)
"""

import json
import logging
from pathlib import Path
from typing import Any

from src.core.ids import generate_run_id, utc_now_iso
from src.core.store import atomic_write_json
from src.domain.schemas import RunLog, WarningLog

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Root logger setup (called once at startup)."""
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)


# =============================================================================
# Run Log Management
# =============================================================================


def create_run_log(operation: str, subject_id: str | None = None) -> RunLog:
    """
    New RunLog.

    Args:
        operation: generate_questions | evaluate_response | resume_summary
        subject_id: user or interview the run belongs to

    Returns:
        RunLog in "pending" state
    """
    return RunLog(
        run_id=generate_run_id(),
        operation=operation,
        started_at=utc_now_iso(),
        result="pending",
        subject_id=subject_id,
    )


def emit_warning(
    run_log: RunLog,
    code: str,
    message: str,
    detail: str | None = None,
) -> None:
    """
    Record a warning event on the run.

    Args:
        run_log: RunLog instance
        code: warning code (e.g. EVALUATION_FALLBACK_USED)
        message: human readable message
        detail: raw context (truncated model output etc.)
    """
    run_log.warnings.append(
        WarningLog(
            level="warning",
            code=code,
            operation=run_log.operation,
            message=message,
            detail=detail,
        )
    )


def complete_run_log(
    run_log: RunLog,
    success: bool,
    error_code: str | None = None,
    error_context: dict[str, Any] | None = None,
) -> None:
    """
    Close the run.

    Args:
        run_log: RunLog instance
        success: success flag
        error_code: error code (failure only)
        error_context: error context (failure only)
    """
    run_log.finished_at = utc_now_iso()
    run_log.result = "success" if success else "failed"

    if not success:
        run_log.error_code = error_code
        run_log.error_context = error_context


def save_run_log(run_log: RunLog, logs_dir: Path) -> Path:
    """
    Persist a RunLog.

    Returns:
        Written file path
    """
    logs_dir.mkdir(parents=True, exist_ok=True)
    log_path = logs_dir / f"run_{run_log.run_id}.json"
    atomic_write_json(log_path, run_log.to_dict())
    return log_path


def load_run_log(log_path: Path) -> dict[str, Any]:
    data: dict[str, Any] = json.loads(log_path.read_text(encoding="utf-8"))
    return data


def list_run_logs(logs_dir: Path) -> list[Path]:
    """
    Run log files in logs_dir, newest first.
    """
    if not logs_dir.exists():
        return []

    logs = list(logs_dir.glob("run_*.json"))
    logs.sort(key=lambda p: p.stat().st_mtime, reverse=True)
    return logs
