"""
Supabase-backed record store.

Same RecordStore interface over hosted Postgres (PostgREST) tables.
Row-level security is bypassed with the service role key; ownership checks
stay in the services (user_id filters).
"""

import logging
import os
from collections.abc import Callable
from typing import Any

from src.core.ids import generate_record_id
from src.core.store import RecordStore, Row, StoreError, validate_table_name
from src.domain.errors import ErrorCodes

logger = logging.getLogger(__name__)


class SupabaseStore(RecordStore):
    """
    Supabase store.

    Usage:
        store = SupabaseStore()  # SUPABASE_URL / SUPABASE_SERVICE_ROLE_KEY
        store.select("resume_skills", user_id=user_id)
    """

    def __init__(
        self,
        url: str | None = None,
        key: str | None = None,
        client: Any = None,
    ):
        """
        Args:
            url: project URL (env SUPABASE_URL)
            key: service role key (env SUPABASE_SERVICE_ROLE_KEY)
            client: prebuilt client (tests)

        Raises:
            StoreError: url/key missing (fail-fast)
        """
        self.url = url or os.environ.get("SUPABASE_URL")
        self.key = key or os.environ.get("SUPABASE_SERVICE_ROLE_KEY")
        self._client = client

        if self._client is None and not (self.url and self.key):
            raise StoreError(
                ErrorCodes.STORE_FAILED,
                "Supabase is not configured. "
                "Set SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY.",
            )

    def _get_client(self) -> Any:
        """Supabase client (lazy init)."""
        if self._client is None:
            try:
                from supabase import create_client
            except ImportError as e:
                raise StoreError(
                    ErrorCodes.STORE_FAILED,
                    "supabase package not installed. Run: pip install supabase",
                ) from e
            self._client = create_client(self.url, self.key)
        return self._client

    def _execute(self, table: str, action: str, query: Any) -> list[Row]:
        try:
            response = query.execute()
        except Exception as e:
            logger.error(f"Supabase {action} on {table} failed: {e}", exc_info=True)
            raise StoreError(
                ErrorCodes.STORE_FAILED,
                f"Supabase {action} failed",
                table=table,
            ) from e
        return list(response.data or [])

    # =========================================================================
    # Read
    # =========================================================================

    def select(
        self,
        table: str,
        order_by: str | None = None,
        descending: bool = False,
        **filters: Any,
    ) -> list[Row]:
        validate_table_name(table)
        query = self._get_client().table(table).select("*")
        for key, value in filters.items():
            query = query.eq(key, value)
        if order_by is not None:
            query = query.order(order_by, desc=descending)
        return self._execute(table, "select", query)

    # =========================================================================
    # Write
    # =========================================================================

    def insert(self, table: str, values: Row) -> Row:
        validate_table_name(table)
        row = dict(values)
        if not row.get("id"):
            row["id"] = generate_record_id()
        data = self._execute(table, "insert", self._get_client().table(table).insert(row))
        return data[0] if data else row

    def update(self, table: str, record_id: str, values: Row) -> Row | None:
        validate_table_name(table)
        changes = {k: v for k, v in values.items() if k != "id"}
        query = self._get_client().table(table).update(changes).eq("id", record_id)
        data = self._execute(table, "update", query)
        return data[0] if data else None

    def upsert(self, table: str, values: Row, on_conflict: tuple[str, ...]) -> Row:
        validate_table_name(table)
        query = self._get_client().table(table).upsert(
            dict(values), on_conflict=",".join(on_conflict)
        )
        data = self._execute(table, "upsert", query)
        return data[0] if data else dict(values)

    def delete(self, table: str, record_id: str) -> bool:
        validate_table_name(table)
        query = self._get_client().table(table).delete().eq("id", record_id)
        return bool(self._execute(table, "delete", query))

    def delete_where(self, table: str, predicate: Callable[[Row], bool]) -> int:
        removed = 0
        for row in self.select(table):
            if predicate(row) and self.delete(table, row["id"]):
                removed += 1
        return removed
