"""
test_resume_service.py - resume section CRUD and summary generation
"""

import json
from unittest.mock import AsyncMock

import pytest

from src.app.providers.base import LLMError
from src.app.services.resume import (
    ResumeService,
    ResumeSummaryService,
    build_summary_prompt,
    get_section,
)
from src.domain.errors import ServiceError
from src.testing.fakes import make_generation


@pytest.fixture
def service(store) -> ResumeService:
    return ResumeService(store)


@pytest.fixture
def summary_service(config, store, llm_provider, logs_dir) -> ResumeSummaryService:
    return ResumeSummaryService(config, store, llm_provider, logs_dir)


def test_unknown_section():
    with pytest.raises(ServiceError) as exc_info:
        get_section("references")

    assert exc_info.value.code == "UNKNOWN_SECTION"
    assert "skills" in exc_info.value.context["known"]


# =============================================================================
# CRUD
# =============================================================================


class TestCreate:
    def test_list_section_insert_drops_unknown_fields(self, service):
        row = service.create_record(
            "u1", "education", {"institution_name": "MIT", "degree": "BSc", "admin": True}
        )

        assert row["user_id"] == "u1"
        assert row["institution_name"] == "MIT"
        assert "admin" not in row

    def test_blank_required_field(self, service):
        with pytest.raises(ServiceError) as exc_info:
            service.create_record("u1", "projects", {"project_name": "   "})

        assert exc_info.value.code == "MISSING_REQUIRED_FIELD"
        assert exc_info.value.context["field"] == "project_name"

    def test_skills_upsert_on_name(self, service, store):
        service.create_record("u1", "skills", {"skill_name": "Go", "proficiency_level": "Beginner"})
        service.create_record("u1", "skills", {"skill_name": "Go", "proficiency_level": "Expert"})
        service.create_record("u2", "skills", {"skill_name": "Go"})

        rows = service.list_records("u1", "skills")
        assert len(rows) == 1
        assert rows[0]["proficiency_level"] == "Expert"
        assert len(store.select("resume_skills")) == 2

    def test_personal_info_one_row_per_user(self, service):
        service.create_record("u1", "personal-info", {"full_name": "Ada"})
        service.create_record("u1", "personal-info", {"full_name": "Ada L.", "phone": "123"})

        info = service.get_personal_info("u1")
        assert info["full_name"] == "Ada L."
        assert info["phone"] == "123"
        assert len(service.list_records("u1", "personal-info")) == 1

    def test_personal_info_missing(self, service):
        with pytest.raises(ServiceError) as exc_info:
            service.get_personal_info("u1")

        assert exc_info.value.code == "NOT_FOUND"


class TestUpdateDelete:
    def test_update(self, service):
        row = service.create_record("u1", "achievements", {"achievement_title": "Award"})

        updated = service.update_record("u1", "achievements", row["id"], {"description": "Top 1%"})

        assert updated["achievement_title"] == "Award"
        assert updated["description"] == "Top 1%"

    def test_update_cannot_blank_required_field(self, service):
        row = service.create_record("u1", "achievements", {"achievement_title": "Award"})

        with pytest.raises(ServiceError) as exc_info:
            service.update_record("u1", "achievements", row["id"], {"achievement_title": ""})

        assert exc_info.value.code == "MISSING_REQUIRED_FIELD"

    def test_other_users_record_not_found(self, service):
        row = service.create_record("u1", "positions", {"position_title": "Lead"})

        with pytest.raises(ServiceError) as exc_info:
            service.update_record("u2", "positions", row["id"], {"organization": "X"})
        assert exc_info.value.code == "NOT_FOUND"

        with pytest.raises(ServiceError):
            service.delete_record("u2", "positions", row["id"])
        assert len(service.list_records("u1", "positions")) == 1

    def test_delete(self, service):
        row = service.create_record("u1", "hobbies", {"activity_name": "Chess"})

        service.delete_record("u1", "hobbies", row["id"])

        assert service.list_records("u1", "hobbies") == []


class TestSaveAll:
    def test_creates_updates_and_skips_blank(self, service):
        existing = service.create_record("u1", "work-experience", {"company_name": "Acme"})

        saved = service.save_all(
            "u1",
            "work-experience",
            [
                {"id": existing["id"], "company_name": "Acme", "position": "Engineer"},
                {"company_name": "Globex"},
                {"company_name": ""},
            ],
        )

        assert len(saved) == 2
        rows = service.list_records("u1", "work-experience")
        assert {r["company_name"] for r in rows} == {"Acme", "Globex"}
        assert next(r for r in rows if r["company_name"] == "Acme")["position"] == "Engineer"

    def test_personal_info_object(self, service):
        saved = service.save_all("u1", "personal-info", {"full_name": "Ada"})

        assert saved[0]["full_name"] == "Ada"


class TestGatherResume:
    def test_keys_and_meta_stripped(self, service):
        service.create_record("u1", "personal-info", {"full_name": "Ada"})
        service.create_record("u1", "skills", {"skill_name": "Python"})

        resume = service.gather_resume("u1")

        assert set(resume) == {"personalInfo", "skills"}
        assert resume["personalInfo"] == {"full_name": "Ada"}
        assert resume["skills"] == [{"skill_name": "Python"}]


# =============================================================================
# Summary
# =============================================================================


def test_summary_prompt_embeds_resume_json():
    prompt = build_summary_prompt({"skills": [{"skill_name": "Go"}]})

    assert "generate a professional summary (2-3 sentences)" in prompt
    assert json.dumps({"skills": [{"skill_name": "Go"}]}, indent=2) in prompt


class TestResumeSummaryService:
    async def test_generate_and_store(self, summary_service, service, llm_provider):
        service.create_record("u1", "skills", {"skill_name": "Python"})
        llm_provider.generate.return_value = make_generation("  Seasoned Python developer.  ")

        summary = await summary_service.generate_summary("u1")

        assert summary == "Seasoned Python developer."
        assert summary_service.get_summary("u1")["summary_text"] == summary
        assert '"skill_name": "Python"' in llm_provider.generate.call_args.args[0]

    async def test_regenerate_replaces(self, summary_service, store, llm_provider):
        llm_provider.generate.return_value = make_generation("First.")
        await summary_service.generate_summary("u1")
        llm_provider.generate.return_value = make_generation("Second.")
        await summary_service.generate_summary("u1")

        rows = store.select("resume_summary", user_id="u1")
        assert [r["summary_text"] for r in rows] == ["Second."]

    async def test_user_id_required(self, summary_service):
        with pytest.raises(ServiceError) as exc_info:
            await summary_service.generate_summary(None)

        assert exc_info.value.code == "MISSING_REQUIRED_FIELD"
        assert exc_info.value.message == "User ID is required"

    async def test_empty_reply(self, summary_service, store, llm_provider):
        llm_provider.generate.return_value = make_generation("   ")

        with pytest.raises(ServiceError) as exc_info:
            await summary_service.generate_summary("u1")

        assert exc_info.value.code == "EMPTY_SUMMARY"
        assert store.select("resume_summary") == []

    async def test_provider_failure(self, summary_service, llm_provider):
        llm_provider.generate = AsyncMock(side_effect=LLMError("GENERATION_FAILED", "quota"))

        with pytest.raises(ServiceError) as exc_info:
            await summary_service.generate_summary("u1")

        assert exc_info.value.code == "UPSTREAM_FAILED"

    def test_get_summary_missing(self, summary_service):
        with pytest.raises(ServiceError) as exc_info:
            summary_service.get_summary("u1")

        assert exc_info.value.code == "NOT_FOUND"
