#!/usr/bin/env python3
"""
purge_expired_tokens.py - auto-login token cleanup

Deletes auto_login_tokens rows that are used or past expires_at.
The store is selected by default.yaml (storage.backend).

Usage:
    # dry-run (lists what would be deleted)
    python scripts/purge_expired_tokens.py

    # delete
    python scripts/purge_expired_tokens.py --apply

    # cron (hourly)
    0 * * * * cd /path/to/project && python scripts/purge_expired_tokens.py --apply >> /var/log/purge_tokens.log 2>&1
"""

import argparse
import logging
from dataclasses import dataclass
from pathlib import Path

import yaml
from dotenv import load_dotenv

from src.app.services.auth import AuthService
from src.core.store import RecordStore, create_store
from src.domain.constants import TABLE_AUTO_LOGIN_TOKENS

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).parent.parent


@dataclass
class PurgeResult:
    scanned: int = 0
    stale: int = 0
    deleted: int = 0


def load_config(config_path: Path) -> dict:
    if not config_path.exists():
        logger.warning(f"Config not found, using defaults: {config_path}")
        return {}
    with open(config_path, encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def purge_tokens(store: RecordStore, apply: bool, service: AuthService | None = None) -> PurgeResult:
    """
    Find (and with apply, delete) used or expired tokens.

    Args:
        store: record store
        apply: delete; otherwise only report
        service: AuthService (tests inject one with a fixed clock)
    """
    service = service or AuthService(store)
    result = PurgeResult(scanned=len(store.select(TABLE_AUTO_LOGIN_TOKENS)))

    stale = service.stale_tokens()
    result.stale = len(stale)
    for row in stale:
        state = "used" if row.get("used") else f"expired {row.get('expires_at')}"
        prefix = "" if apply else "[DRY-RUN] "
        logger.info(f"{prefix}stale token {row['id']} (user {row.get('user_id')}, {state})")

    if apply and stale:
        result.deleted = service.purge_stale_tokens()

    return result


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Delete used or expired auto-login tokens",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--apply",
        action="store_true",
        help="delete stale tokens (default: dry-run)",
    )
    parser.add_argument(
        "--config",
        type=str,
        default="default.yaml",
        help="settings file (default: default.yaml)",
    )
    args = parser.parse_args(argv)

    load_dotenv()
    config_path = Path(args.config)
    if not config_path.is_absolute():
        config_path = PROJECT_ROOT / config_path
    config = load_config(config_path)

    store = create_store(config, PROJECT_ROOT)

    if not args.apply:
        logger.info("=" * 50)
        logger.info("DRY-RUN (nothing is deleted); add --apply to delete")
        logger.info("=" * 50)

    result = purge_tokens(store, args.apply, AuthService(store, config))

    logger.info(
        f"Tokens: {result.scanned} scanned, {result.stale} stale, {result.deleted} deleted"
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
