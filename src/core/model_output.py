"""
Model output parsing.

Model replies are free text that usually embeds one JSON object, often
wrapped in prose or code fences. Parsing never raises on bad output:
callers get None and apply their own fallback.
"""

import json
import re
from typing import Any

from src.domain.schemas import GeneratedQuestion

# Greedy: first "{" to last "}"
JSON_OBJECT_PATTERN = re.compile(r"\{[\s\S]*\}")

NUMBERED_LINE_PATTERN = re.compile(r"^\d+[.)]")
NUMBER_PREFIX_PATTERN = re.compile(r"^\d+[.)\s]*")


def extract_json_object(text: str | None) -> dict[str, Any] | None:
    """
    First-"{"-to-last-"}" span of text, parsed.

    Returns:
        dict, or None when there is no span, it is not valid JSON,
        or it is not an object
    """
    if not text:
        return None
    match = JSON_OBJECT_PATTERN.search(text)
    if not match:
        return None
    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError:
        return None
    return data if isinstance(data, dict) else None


def difficulty_for_index(index: int) -> str:
    """Difficulty ramp for questions recovered from plain text."""
    if index < 2:
        return "easy"
    if index < 4:
        return "medium"
    return "hard"


def parse_question_lines(text: str, limit: int, domain: str) -> list[GeneratedQuestion]:
    """
    Recover questions from a plain-text reply.

    Keeps non-blank lines that contain "?" or start with "N." / "N)",
    strips the numbering, and takes the first `limit` lines.
    """
    lines = [
        line for line in text.split("\n")
        if line.strip() and ("?" in line or NUMBERED_LINE_PATTERN.match(line))
    ]
    return [
        GeneratedQuestion(
            question=NUMBER_PREFIX_PATTERN.sub("", line, count=1).strip(),
            type="general",
            difficulty=difficulty_for_index(index),
            focus_area=domain,
        )
        for index, line in enumerate(lines[:limit])
    ]
