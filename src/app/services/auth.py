"""
Auth Service: users and single-use auto-login tokens.

Rules:
- Passwords stored as bcrypt hashes; hashes never leave this module
- Auto-login tokens: uuid4, single use, short TTL (default 5 minutes)
- Expired or used tokens are purged by scripts/purge_expired_tokens.py
"""

import logging
import os
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any

import bcrypt

from src.core.ids import generate_login_token, parse_iso
from src.core.store import RecordStore, Row
from src.domain import constants
from src.domain.errors import ErrorCodes, ServiceError

logger = logging.getLogger(__name__)

PUBLIC_USER_FIELDS = ("id", "email", "name", "role")
DEFAULT_ROLE = "candidate"


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # malformed stored hash
        return False


def public_user(row: Row) -> dict[str, Any]:
    return {key: row.get(key) for key in PUBLIC_USER_FIELDS}


def is_token_stale(row: Row, now: datetime) -> bool:
    """Used, or past expires_at."""
    if row.get("used"):
        return True
    expires_at = row.get("expires_at")
    return not expires_at or parse_iso(expires_at) <= now


class AuthService:
    """
    User registration/login and auto-login tokens.

    Usage:
        service = AuthService(store, config)
        issued = service.issue_login_token(user_id)
        user = service.redeem_login_token(issued["token"])
    """

    def __init__(
        self,
        store: RecordStore,
        config: dict | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        """
        Args:
            store: record store
            config: settings (auth.token_ttl_minutes, auth.site_url)
            clock: current UTC time (tests)
        """
        self.store = store
        self.config = config or {}
        self._clock = clock or (lambda: datetime.now(UTC))

    @property
    def token_ttl(self) -> timedelta:
        minutes = self.config.get("auth", {}).get(
            "token_ttl_minutes", constants.AUTO_LOGIN_TOKEN_TTL_MINUTES
        )
        return timedelta(minutes=float(minutes))

    @property
    def site_url(self) -> str:
        url = (
            os.environ.get("SITE_URL")
            or self.config.get("auth", {}).get("site_url")
            or constants.DEFAULT_SITE_URL
        )
        return str(url).rstrip("/")

    # =========================================================================
    # Users
    # =========================================================================

    def find_by_email(self, email: str) -> Row | None:
        return self.store.get(constants.TABLE_USERS, email=email.strip().lower())

    def register(
        self,
        email: str | None,
        password: str | None,
        name: str | None = None,
        role: str | None = None,
    ) -> dict[str, Any]:
        """
        Create a user.

        Raises:
            ServiceError: MISSING_REQUIRED_FIELD, DUPLICATE_EMAIL
        """
        if not email or not password:
            raise ServiceError(
                ErrorCodes.MISSING_REQUIRED_FIELD,
                "Email and password are required",
            )

        email = email.strip().lower()
        if self.find_by_email(email) is not None:
            raise ServiceError(
                ErrorCodes.DUPLICATE_EMAIL,
                "An account with this email already exists",
                email=email,
            )

        row = self.store.insert(
            constants.TABLE_USERS,
            {
                "email": email,
                "name": (name or "").strip() or email.split("@")[0],
                "role": role or DEFAULT_ROLE,
                "password_hash": hash_password(password),
            },
        )
        logger.info(f"Registered user {row['id']}")
        return public_user(row)

    def login(self, email: str | None, password: str | None) -> dict[str, Any]:
        """
        Raises:
            ServiceError: INVALID_CREDENTIALS
        """
        row = self.find_by_email(email) if email else None
        if (
            row is None
            or not password
            or not row.get("password_hash")
            or not verify_password(password, row["password_hash"])
        ):
            raise ServiceError(ErrorCodes.INVALID_CREDENTIALS, "Invalid email or password")
        return public_user(row)

    # =========================================================================
    # Auto-login tokens
    # =========================================================================

    def issue_login_token(self, user_id: str | None) -> dict[str, Any]:
        """
        Issue a single-use login link for an existing user.

        Raises:
            ServiceError: MISSING_REQUIRED_FIELD, INVALID_USER
        """
        if not user_id:
            raise ServiceError(ErrorCodes.MISSING_REQUIRED_FIELD, "user_id is required")

        user = self.store.get(constants.TABLE_USERS, id=user_id)
        if user is None:
            logger.info(f"Auto-login refused: user {user_id} not found")
            raise ServiceError(ErrorCodes.INVALID_USER, "Invalid user_id")

        token = generate_login_token()
        expires_at = (self._clock() + self.token_ttl).isoformat()
        self.store.insert(
            constants.TABLE_AUTO_LOGIN_TOKENS,
            {
                "user_id": user_id,
                "token": token,
                "used": False,
                "expires_at": expires_at,
            },
        )
        logger.info(f"Auto-login token created for user {user_id}")

        return {
            "success": True,
            "login_url": f"{self.site_url}/auto-login?token={token}",
            "token": token,
            "expires_at": expires_at,
            "message": "Auto-login token created successfully",
        }

    def redeem_login_token(self, token: str | None) -> dict[str, Any]:
        """
        Exchange a token for its user; the token is marked used.

        Raises:
            ServiceError: MISSING_REQUIRED_FIELD, INVALID_TOKEN, TOKEN_EXPIRED, NOT_FOUND
        """
        if not token:
            raise ServiceError(ErrorCodes.MISSING_REQUIRED_FIELD, "token is required")

        row = self.store.get(constants.TABLE_AUTO_LOGIN_TOKENS, token=token, used=False)
        if row is None:
            raise ServiceError(ErrorCodes.INVALID_TOKEN, "Invalid token")

        if parse_iso(row["expires_at"]) < self._clock():
            raise ServiceError(ErrorCodes.TOKEN_EXPIRED, "Token expired")

        user = self.store.get(constants.TABLE_USERS, id=row["user_id"])
        if user is None:
            raise ServiceError(ErrorCodes.NOT_FOUND, "User not found", user_id=row["user_id"])

        self.store.update(constants.TABLE_AUTO_LOGIN_TOKENS, row["id"], {"used": True})
        logger.info(f"Auto-login token redeemed for user {user['id']}")
        return public_user(user)

    def stale_tokens(self) -> list[Row]:
        now = self._clock()
        return [
            row
            for row in self.store.select(constants.TABLE_AUTO_LOGIN_TOKENS)
            if is_token_stale(row, now)
        ]

    def purge_stale_tokens(self) -> int:
        """Delete used or expired tokens. Returns the count."""
        now = self._clock()
        removed = self.store.delete_where(
            constants.TABLE_AUTO_LOGIN_TOKENS,
            lambda row: is_token_stale(row, now),
        )
        logger.info(f"Purged {removed} stale auto-login tokens")
        return removed
