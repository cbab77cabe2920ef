"""
Resume Service: per-user resume sections and the generated summary.

Rules:
- Rows are always scoped by user_id (ownership checked on update/delete)
- Unknown fields are dropped; list sections need a non-blank first field
- personal-info is one row per user (upsert)
- skills / hobbies upsert on (user_id, name)
"""

import json
import logging
from pathlib import Path
from typing import Any

from src.app.providers.base import LLMProvider
from src.app.services.llm import SUMMARY_PARAMS, finish_run, generate_text, resolve_llm_provider
from src.core.logging import create_run_log
from src.core.store import RecordStore, Row
from src.domain import constants
from src.domain.errors import ErrorCodes, ServiceError
from src.domain.schemas import RESUME_SECTIONS, RESUME_SUMMARY_KEYS, ResumeSection

logger = logging.getLogger(__name__)

# Store bookkeeping columns, not resume content
META_FIELDS = ("id", "user_id", "created_at", "updated_at")


def get_section(name: str) -> ResumeSection:
    """
    Raises:
        ServiceError: UNKNOWN_SECTION
    """
    section = RESUME_SECTIONS.get(name)
    if section is None:
        raise ServiceError(
            ErrorCodes.UNKNOWN_SECTION,
            f"Unknown resume section: {name}",
            section=name,
            known=sorted(RESUME_SECTIONS),
        )
    return section


def _content(row: Row) -> Row:
    return {k: v for k, v in row.items() if k not in META_FIELDS}


class ResumeService:
    """
    Resume section CRUD.

    Usage:
        service = ResumeService(store)
        service.create_record(user_id, "skills", {"skill_name": "Python"})
    """

    def __init__(self, store: RecordStore):
        self.store = store

    # =========================================================================
    # Read
    # =========================================================================

    def list_records(self, user_id: str, section_name: str) -> list[Row]:
        section = get_section(section_name)
        return self.store.select(section.table, order_by="created_at", user_id=user_id)

    def get_personal_info(self, user_id: str) -> Row:
        """
        Raises:
            ServiceError: NOT_FOUND
        """
        row = self.store.get(constants.TABLE_PERSONAL_INFO, user_id=user_id)
        if row is None:
            raise ServiceError(
                ErrorCodes.NOT_FOUND,
                "Personal info not found",
                user_id=user_id,
            )
        return row

    def gather_resume(self, user_id: str) -> dict[str, Any]:
        """
        All resume content of a user, keyed for the summary prompt.

        Empty sections are omitted; store columns are stripped.
        """
        resume: dict[str, Any] = {}
        for name, key in RESUME_SUMMARY_KEYS.items():
            section = RESUME_SECTIONS[name]
            rows = self.list_records(user_id, name)
            if not rows:
                continue
            if section.single:
                resume[key] = _content(rows[0])
            else:
                resume[key] = [_content(r) for r in rows]
        return resume

    # =========================================================================
    # Write
    # =========================================================================

    def _validated(self, section: ResumeSection, values: dict[str, Any]) -> dict[str, Any]:
        cleaned = section.clean(values)
        if not section.single and section.is_blank(cleaned):
            raise ServiceError(
                ErrorCodes.MISSING_REQUIRED_FIELD,
                f"{section.required_field} is required",
                section=section.name,
                field=section.required_field,
            )
        return cleaned

    def _owned(self, section: ResumeSection, user_id: str, record_id: str) -> Row:
        row = self.store.get(section.table, id=record_id, user_id=user_id)
        if row is None:
            raise ServiceError(
                ErrorCodes.NOT_FOUND,
                "Record not found",
                section=section.name,
                record_id=record_id,
            )
        return row

    def create_record(self, user_id: str, section_name: str, values: dict[str, Any]) -> Row:
        """
        Create a row (upsert for personal-info, skills, hobbies).

        Raises:
            ServiceError: UNKNOWN_SECTION, MISSING_REQUIRED_FIELD
        """
        section = get_section(section_name)
        row = {**self._validated(section, values), "user_id": user_id}

        if section.single or section.unique_on:
            saved = self.store.upsert(section.table, row, on_conflict=section.conflict_keys)
        else:
            saved = self.store.insert(section.table, row)

        logger.info(f"Saved {section.name} record {saved['id']} for user {user_id}")
        return saved

    def update_record(
        self,
        user_id: str,
        section_name: str,
        record_id: str,
        values: dict[str, Any],
    ) -> Row:
        """
        Raises:
            ServiceError: UNKNOWN_SECTION, NOT_FOUND, MISSING_REQUIRED_FIELD
        """
        section = get_section(section_name)
        current = self._owned(section, user_id, record_id)
        changes = section.clean(values)
        self._validated(section, {**_content(current), **changes})

        updated = self.store.update(section.table, record_id, changes)
        if updated is None:
            raise ServiceError(ErrorCodes.NOT_FOUND, "Record not found", record_id=record_id)
        return updated

    def delete_record(self, user_id: str, section_name: str, record_id: str) -> None:
        """
        Raises:
            ServiceError: UNKNOWN_SECTION, NOT_FOUND
        """
        section = get_section(section_name)
        self._owned(section, user_id, record_id)
        self.store.delete(section.table, record_id)
        logger.info(f"Deleted {section.name} record {record_id} for user {user_id}")

    def save_all(
        self,
        user_id: str,
        section_name: str,
        rows: list[dict[str, Any]] | dict[str, Any],
    ) -> list[Row]:
        """
        Form "save all": rows with id are updated, rows without are created.

        Blank rows are skipped; stored rows missing from the list are kept.
        personal-info takes a single object.
        """
        section = get_section(section_name)

        if section.single:
            values = rows if isinstance(rows, dict) else (rows[0] if rows else {})
            return [self.create_record(user_id, section_name, values)]

        if isinstance(rows, dict):
            rows = [rows]

        saved: list[Row] = []
        for values in rows:
            if section.is_blank(section.clean(values)):
                continue
            record_id = values.get("id")
            if record_id:
                saved.append(self.update_record(user_id, section_name, record_id, values))
            else:
                saved.append(self.create_record(user_id, section_name, values))
        return saved


# =============================================================================
# Summary
# =============================================================================


def build_summary_prompt(resume: dict[str, Any]) -> str:
    return (
        "Based on the following resume data, generate a professional summary "
        "(2-3 sentences) that highlights the person's key strengths, experience, "
        "and career focus:\n\n"
        f"{json.dumps(resume, indent=2, ensure_ascii=False)}\n\n"
        "Create a concise, compelling professional summary suitable for the top of a "
        "resume. Focus on the most relevant skills, experience, and achievements.\n"
    )


class ResumeSummaryService:
    """
    Resume summary generation.

    One resume_summary row per user, replaced on each generation.
    """

    def __init__(
        self,
        config: dict,
        store: RecordStore,
        provider: LLMProvider | None = None,
        logs_dir: Path | None = None,
    ):
        self.config = config
        self.store = store
        self._provider = provider
        self.logs_dir = logs_dir
        self.resumes = ResumeService(store)

    def get_summary(self, user_id: str) -> Row:
        """
        Raises:
            ServiceError: NOT_FOUND
        """
        row = self.store.get(constants.TABLE_RESUME_SUMMARY, user_id=user_id)
        if row is None:
            raise ServiceError(ErrorCodes.NOT_FOUND, "Resume summary not found", user_id=user_id)
        return row

    async def generate_summary(self, user_id: str | None) -> str:
        """
        Generate and store the user's resume summary.

        Raises:
            ServiceError: MISSING_REQUIRED_FIELD, LLM_NOT_CONFIGURED,
                UPSTREAM_FAILED, EMPTY_SUMMARY
        """
        if not user_id:
            raise ServiceError(ErrorCodes.MISSING_REQUIRED_FIELD, "User ID is required")

        resume = self.resumes.gather_resume(user_id)
        provider = resolve_llm_provider(self.config, self._provider)

        run_log = create_run_log("resume_summary", subject_id=user_id)
        try:
            text = await generate_text(provider, build_summary_prompt(resume), SUMMARY_PARAMS, run_log)
            summary = text.strip()
            if not summary:
                raise ServiceError(
                    ErrorCodes.EMPTY_SUMMARY,
                    "Failed to generate summary from the language model",
                )
        except ServiceError as e:
            finish_run(run_log, self.logs_dir, error=e)
            raise

        self.store.upsert(
            constants.TABLE_RESUME_SUMMARY,
            {"user_id": user_id, "summary_text": summary},
            on_conflict=("user_id",),
        )
        finish_run(run_log, self.logs_dir)
        logger.info(f"Resume summary stored for user {user_id} ({len(resume)} sections)")
        return summary
