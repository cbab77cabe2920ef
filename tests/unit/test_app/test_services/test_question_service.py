"""
test_question_service.py - QuestionService tests

Checks:
- required field validation
- JSON reply parsed and truncated to numQuestions
- plain-text fallback (numbered / question lines)
- resume summary personalization
- run logs written on success and failure
"""

import json

import pytest

from src.app.services.questions import (
    QuestionService,
    build_question_prompt,
    coerce_num_questions,
)
from src.domain.errors import ServiceError
from src.testing.fakes import make_generation

PAYLOAD = {
    "jobRole": "Backend Engineer",
    "domain": "FinTech",
    "experienceLevel": "mid",
    "interviewType": "technical",
    "numQuestions": 2,
}


def questions_reply(*texts: str) -> str:
    return json.dumps(
        {
            "questions": [
                {"question": t, "type": "technical", "difficulty": "hard", "focus_area": "APIs"}
                for t in texts
            ]
        }
    )


@pytest.fixture
def service(config, store, llm_provider, logs_dir) -> QuestionService:
    return QuestionService(config, store, provider=llm_provider, logs_dir=logs_dir)


# =============================================================================
# Prompt / helpers
# =============================================================================


class TestBuildQuestionPrompt:
    def test_includes_position_details(self):
        prompt = build_question_prompt("SRE", "Cloud", "senior", "mixed", 3)

        assert "Generate 3 high-quality interview questions" in prompt
        assert "- Job Role: SRE" in prompt
        assert "for senior level candidates" in prompt
        assert "Additional Requirements" not in prompt
        assert "Candidate's Background" not in prompt

    def test_optional_blocks(self):
        prompt = build_question_prompt(
            "SRE", "Cloud", "senior", "mixed", 3,
            additional_constraints="Focus on Kubernetes",
            resume_summary="Ran on-call for five years.",
        )

        assert "- Additional Requirements: Focus on Kubernetes" in prompt
        assert '"Ran on-call for five years."' in prompt
        assert "6. Personalize questions" in prompt


class TestCoerceNumQuestions:
    @pytest.mark.parametrize("value,expected", [(None, 5), (3, 3), ("4", 4)])
    def test_valid(self, value, expected):
        assert coerce_num_questions(value) == expected

    @pytest.mark.parametrize("value", [0, -1, "many", True])
    def test_invalid(self, value):
        with pytest.raises(ServiceError) as exc_info:
            coerce_num_questions(value)

        assert exc_info.value.code == "INVALID_FIELD_VALUE"


# =============================================================================
# generate
# =============================================================================


class TestGenerate:
    async def test_missing_fields(self, service, llm_provider):
        with pytest.raises(ServiceError) as exc_info:
            await service.generate({"jobRole": "Backend Engineer"})

        assert exc_info.value.code == "MISSING_REQUIRED_FIELD"
        assert exc_info.value.context["fields"] == ["domain", "experienceLevel", "interviewType"]
        llm_provider.generate.assert_not_called()

    async def test_json_reply_truncated(self, service, llm_provider):
        llm_provider.generate.return_value = make_generation(
            "Here you go:\n" + questions_reply("Q1?", "Q2?", "Q3?")
        )

        result = await service.generate(PAYLOAD)

        assert [q.question for q in result.questions] == ["Q1?", "Q2?"]
        assert result.questions[0].difficulty == "hard"
        assert result.to_response()["totalQuestions"] == 2
        assert result.resume_personalized is False
        assert result.parsed_from_text is False

    async def test_uses_question_params(self, service, llm_provider):
        llm_provider.generate.return_value = make_generation(questions_reply("Q1?"))

        await service.generate(PAYLOAD)

        params = llm_provider.generate.call_args.args[1]
        assert params.temperature == 0.7
        assert params.max_output_tokens == 2048

    async def test_default_count_from_config(self, config, store, llm_provider):
        config["interview"]["default_num_questions"] = 1
        llm_provider.generate.return_value = make_generation(questions_reply("A?", "B?"))
        service = QuestionService(config, store, provider=llm_provider)

        payload = {k: v for k, v in PAYLOAD.items() if k != "numQuestions"}
        result = await service.generate(payload)

        assert result.total_questions == 1

    async def test_missing_focus_area_defaults_to_domain(self, service, llm_provider):
        llm_provider.generate.return_value = make_generation(
            '{"questions": [{"question": "Why?"}, "Plain string?"]}'
        )

        result = await service.generate(PAYLOAD)

        assert result.questions[0].focus_area == "FinTech"
        assert result.questions[0].type == "general"
        assert result.questions[1].question == "Plain string?"

    async def test_null_question_dropped(self, service, llm_provider):
        llm_provider.generate.return_value = make_generation(
            '{"questions": [{"question": null}, {"question": "Real?"}]}'
        )

        result = await service.generate(PAYLOAD)

        assert [q.question for q in result.questions] == ["Real?"]

    async def test_plain_text_fallback(self, service, llm_provider, logs_dir):
        llm_provider.generate.return_value = make_generation(
            "Sure!\n1. Describe a payment system.\n2) How do you handle retries?\nThanks"
        )

        result = await service.generate({**PAYLOAD, "numQuestions": 5})

        assert [q.question for q in result.questions] == [
            "Describe a payment system.",
            "How do you handle retries?",
        ]
        assert result.parsed_from_text is True
        assert [q.difficulty for q in result.questions] == ["easy", "easy"]

        saved = json.loads(next(logs_dir.glob("run_*.json")).read_text(encoding="utf-8"))
        assert saved["warnings"][0]["code"] == "QUESTIONS_PARSED_FROM_TEXT"

    async def test_questions_not_a_list(self, service, llm_provider):
        llm_provider.generate.return_value = make_generation('{"questions": "none"}')

        with pytest.raises(ServiceError) as exc_info:
            await service.generate(PAYLOAD)

        assert exc_info.value.code == "INVALID_QUESTIONS_FORMAT"

    async def test_no_questions(self, service, llm_provider, logs_dir):
        llm_provider.generate.return_value = make_generation('{"questions": []}')

        with pytest.raises(ServiceError) as exc_info:
            await service.generate(PAYLOAD)

        assert exc_info.value.code == "NO_QUESTIONS_GENERATED"
        saved = json.loads(next(logs_dir.glob("run_*.json")).read_text(encoding="utf-8"))
        assert saved["result"] == "failed"
        assert saved["error_code"] == "NO_QUESTIONS_GENERATED"

    async def test_resume_summary_personalizes(self, service, store, llm_provider):
        store.upsert(
            "resume_summary",
            {"user_id": "u1", "summary_text": "Built ledgers at scale."},
            on_conflict=("user_id",),
        )
        llm_provider.generate.return_value = make_generation(questions_reply("Q1?"))

        result = await service.generate({**PAYLOAD, "userId": "u1"})

        assert result.resume_personalized is True
        prompt = llm_provider.generate.call_args.args[0]
        assert "Built ledgers at scale." in prompt

    async def test_unknown_user_not_personalized(self, service, llm_provider):
        llm_provider.generate.return_value = make_generation(questions_reply("Q1?"))

        result = await service.generate({**PAYLOAD, "userId": "ghost"})

        assert result.resume_personalized is False
