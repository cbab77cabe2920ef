"""
test_purge_expired_tokens.py - purge_expired_tokens.py script tests

Cases:
- dry-run reports stale tokens and deletes nothing
- --apply deletes used and expired tokens, keeps live ones
- main() reads the store location from --config
"""

import sys
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
import yaml

# scripts are not a package
sys.path.insert(0, str(Path(__file__).parent.parent.parent.parent / "scripts"))

from purge_expired_tokens import PurgeResult, main, purge_tokens

from src.app.services.auth import AuthService
from src.core.store import JsonFileStore

NOW = datetime(2025, 3, 1, 12, 0, tzinfo=UTC)


def seed_tokens(store: JsonFileStore, now: datetime) -> None:
    store.insert(
        "auto_login_tokens",
        {"user_id": "u1", "token": "live", "used": False,
         "expires_at": (now + timedelta(minutes=3)).isoformat()},
    )
    store.insert(
        "auto_login_tokens",
        {"user_id": "u1", "token": "used", "used": True,
         "expires_at": (now + timedelta(minutes=3)).isoformat()},
    )
    store.insert(
        "auto_login_tokens",
        {"user_id": "u2", "token": "expired", "used": False,
         "expires_at": (now - timedelta(minutes=1)).isoformat()},
    )


@pytest.fixture
def seeded_store(store: JsonFileStore) -> JsonFileStore:
    seed_tokens(store, NOW)
    return store


@pytest.fixture
def service(seeded_store) -> AuthService:
    return AuthService(seeded_store, clock=lambda: NOW)


class TestPurgeTokens:
    def test_dry_run(self, seeded_store, service):
        result = purge_tokens(seeded_store, apply=False, service=service)

        assert result == PurgeResult(scanned=3, stale=2, deleted=0)
        assert len(seeded_store.select("auto_login_tokens")) == 3

    def test_apply(self, seeded_store, service):
        result = purge_tokens(seeded_store, apply=True, service=service)

        assert result == PurgeResult(scanned=3, stale=2, deleted=2)
        assert [r["token"] for r in seeded_store.select("auto_login_tokens")] == ["live"]

    def test_nothing_stale(self, store):
        result = purge_tokens(store, apply=True, service=AuthService(store, clock=lambda: NOW))

        assert result == PurgeResult()


class TestMain:
    def test_apply_with_config(self, tmp_path: Path):
        data_dir = tmp_path / "records"
        now = datetime.now(UTC)
        seed_tokens(JsonFileStore(data_dir), now)

        config_path = tmp_path / "settings.yaml"
        config_path.write_text(
            yaml.safe_dump({"storage": {"backend": "json", "data_dir": str(data_dir)}}),
            encoding="utf-8",
        )

        assert main(["--apply", "--config", str(config_path)]) == 0
        assert [r["token"] for r in JsonFileStore(data_dir).select("auto_login_tokens")] == ["live"]

    def test_dry_run_keeps_rows(self, tmp_path: Path):
        data_dir = tmp_path / "records"
        seed_tokens(JsonFileStore(data_dir), datetime.now(UTC))
        config_path = tmp_path / "settings.yaml"
        config_path.write_text(
            yaml.safe_dump({"storage": {"data_dir": str(data_dir)}}), encoding="utf-8"
        )

        assert main(["--config", str(config_path)]) == 0
        assert len(JsonFileStore(data_dir).select("auto_login_tokens")) == 3
