"""
Error definitions for the interview service.

Rules:
- No silent failures: services raise ServiceError with a code
- Routes translate codes into the JSON error bodies clients expect
- Model output that cannot be parsed is not an error (fallback applies)
"""

from typing import Any


class ServiceError(Exception):
    """
    Raised when a request cannot be served.

    Usage:
        raise ServiceError("MISSING_REQUIRED_FIELD", "Missing required fields",
                           fields=["jobRole"])
    """

    def __init__(self, code: str, message: str | None = None, **context: Any) -> None:
        self.code = code
        self.message = message or code
        self.context = context
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        ctx_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
        if ctx_str:
            return f"[{self.code}] {self.message} ({ctx_str})"
        return f"[{self.code}] {self.message}"

    def to_dict(self) -> dict[str, Any]:
        """For logs/JSON serialization."""
        return {
            "code": self.code,
            "message": self.message,
            **self.context,
        }


# =============================================================================
# Error Codes
# =============================================================================

class ErrorCodes:
    """Error code constants."""

    # === Request validation ===
    MISSING_REQUIRED_FIELD = "MISSING_REQUIRED_FIELD"
    INVALID_FIELD_VALUE = "INVALID_FIELD_VALUE"
    EMPTY_ANSWER = "EMPTY_ANSWER"

    # === Model output ===
    INVALID_QUESTIONS_FORMAT = "INVALID_QUESTIONS_FORMAT"
    NO_QUESTIONS_GENERATED = "NO_QUESTIONS_GENERATED"
    EMPTY_SUMMARY = "EMPTY_SUMMARY"

    # === Configuration ===
    LLM_NOT_CONFIGURED = "LLM_NOT_CONFIGURED"
    STT_NOT_CONFIGURED = "STT_NOT_CONFIGURED"

    # === Upstream ===
    UPSTREAM_FAILED = "UPSTREAM_FAILED"
    AUDIO_FETCH_FAILED = "AUDIO_FETCH_FAILED"

    # === Records ===
    NOT_FOUND = "NOT_FOUND"
    UNKNOWN_SECTION = "UNKNOWN_SECTION"
    DUPLICATE_EMAIL = "DUPLICATE_EMAIL"

    # === Auth ===
    INVALID_CREDENTIALS = "INVALID_CREDENTIALS"
    INVALID_USER = "INVALID_USER"
    INVALID_TOKEN = "INVALID_TOKEN"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"

    # === Store ===
    STORE_LOCK_TIMEOUT = "STORE_LOCK_TIMEOUT"
    STORE_CORRUPT = "STORE_CORRUPT"
    STORE_FAILED = "STORE_FAILED"
