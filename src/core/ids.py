"""
ID generation: record ids, run ids, login tokens.

Rules:
- Record ids are opaque uuid4 strings (store-assigned)
- Run ids are time-sortable
- Login tokens are single-use uuid4 strings
"""

import uuid
from datetime import UTC, datetime


def generate_record_id() -> str:
    """
    Record ID.

    Format: uuid4 (36 chars)
    """
    return str(uuid.uuid4())


def generate_run_id() -> str:
    """
    Run ID.

    Uniqueness: uuid4 suffix
    Format: RUN-{timestamp}-{uuid[:8]}

    Returns:
        run_id string
    """
    now = datetime.now(UTC)
    timestamp = now.strftime("%Y%m%d%H%M%S")
    unique = uuid.uuid4().hex[:8]

    return f"RUN-{timestamp}-{unique}"


def generate_login_token() -> str:
    """Single-use auto-login token."""
    return str(uuid.uuid4())


def utc_now_iso() -> str:
    """Current UTC time, ISO 8601."""
    return datetime.now(UTC).isoformat()


def parse_iso(value: str) -> datetime:
    """
    Parse an ISO 8601 timestamp.

    Naive values are taken as UTC. A trailing "Z" is accepted.
    """
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed
