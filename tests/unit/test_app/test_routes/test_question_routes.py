"""
test_question_routes.py - POST /api/generate-questions
"""

import json
from unittest.mock import AsyncMock

from src.app.providers.base import LLMError
from src.testing.fakes import make_generation

PAYLOAD = {
    "jobRole": "Data Engineer",
    "domain": "Retail",
    "experienceLevel": "senior",
    "interviewType": "mixed",
    "numQuestions": 1,
}


def test_generate_questions(client, llm_provider):
    llm_provider.generate.return_value = make_generation(
        json.dumps({"questions": [{"question": "Model a star schema.", "type": "technical"}]})
    )

    response = client.post("/api/generate-questions", json=PAYLOAD)

    assert response.status_code == 200
    assert response.json() == {
        "questions": [
            {
                "question": "Model a star schema.",
                "type": "technical",
                "difficulty": "medium",
                "focus_area": "Retail",
            }
        ],
        "resumePersonalized": False,
        "totalQuestions": 1,
    }


def test_personalized_flag(client, store, llm_provider):
    store.upsert(
        "resume_summary",
        {"user_id": "u1", "summary_text": "Spark veteran."},
        on_conflict=("user_id",),
    )
    llm_provider.generate.return_value = make_generation('{"questions": [{"question": "Q?"}]}')

    response = client.post("/api/generate-questions", json={**PAYLOAD, "userId": "u1"})

    assert response.json()["resumePersonalized"] is True


def test_missing_fields_is_500_with_details(client, llm_provider):
    response = client.post("/api/generate-questions", json={"jobRole": "Data Engineer"})

    assert response.status_code == 500
    assert response.json() == {
        "error": "Missing required fields",
        "details": "Failed to generate interview questions",
    }
    llm_provider.generate.assert_not_called()


def test_provider_failure(client, llm_provider):
    llm_provider.generate = AsyncMock(
        side_effect=LLMError("NO_FALLBACK", "API quota exceeded. Try again later.")
    )

    response = client.post("/api/generate-questions", json=PAYLOAD)

    assert response.status_code == 500
    assert response.json()["error"] == "API quota exceeded. Try again later."


def test_no_questions(client, llm_provider):
    llm_provider.generate.return_value = make_generation('{"questions": []}')

    response = client.post("/api/generate-questions", json=PAYLOAD)

    assert response.status_code == 500
    assert response.json()["error"] == "No questions generated"
