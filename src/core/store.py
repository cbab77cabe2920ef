"""
Record store: table-of-rows persistence.

Rules:
- Every row carries a string "id" (assigned on insert)
- insert/update stamp created_at/updated_at (ISO 8601, UTC)
- Read-modify-write per table happens under a table lock
- Atomic writes: temp → rename + fsync

Backends:
- JsonFileStore: one JSON file per table (default, self-hosted)
- SupabaseStore: hosted Postgres via supabase-py (core/supabase_store.py)
"""

import copy
import json
import logging
import os
import re
import tempfile
from abc import ABC, abstractmethod
from collections.abc import Callable, Generator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from filelock import FileLock, Timeout

from src.core.ids import generate_record_id, utc_now_iso
from src.domain.errors import ErrorCodes, ServiceError

logger = logging.getLogger(__name__)

Row = dict[str, Any]

TABLE_NAME_PATTERN = re.compile(r"^[a-z][a-z0-9_]*$")


class StoreError(ServiceError):
    """Store related error."""
    pass


def validate_table_name(table: str) -> None:
    """
    Table names become file names: lowercase snake_case only.

    Raises:
        StoreError: INVALID_FIELD_VALUE
    """
    if not TABLE_NAME_PATTERN.match(table):
        raise StoreError(
            ErrorCodes.INVALID_FIELD_VALUE,
            f"Invalid table name: {table!r}",
            table=table,
        )


def _matches(row: Row, filters: dict[str, Any]) -> bool:
    return all(row.get(key) == value for key, value in filters.items())


def _sort_rows(rows: list[Row], order_by: str | None, descending: bool) -> list[Row]:
    if order_by is None:
        return rows
    # None values sort last regardless of direction
    present = [r for r in rows if r.get(order_by) is not None]
    missing = [r for r in rows if r.get(order_by) is None]
    present.sort(key=lambda r: r[order_by], reverse=descending)
    return present + missing


# =============================================================================
# Interface
# =============================================================================


class RecordStore(ABC):
    """
    Record store interface.

    Filters are equality matches on row fields.
    """

    @abstractmethod
    def select(
        self,
        table: str,
        order_by: str | None = None,
        descending: bool = False,
        **filters: Any,
    ) -> list[Row]:
        """Rows matching all filters."""
        ...

    def get(self, table: str, **filters: Any) -> Row | None:
        """First row matching all filters, or None."""
        rows = self.select(table, **filters)
        return rows[0] if rows else None

    @abstractmethod
    def insert(self, table: str, values: Row) -> Row:
        """Insert a row. Returns the stored row (with id)."""
        ...

    @abstractmethod
    def update(self, table: str, record_id: str, values: Row) -> Row | None:
        """Merge values into the row. None if the row does not exist."""
        ...

    @abstractmethod
    def upsert(self, table: str, values: Row, on_conflict: tuple[str, ...]) -> Row:
        """Update the row matching values on the conflict keys, else insert."""
        ...

    @abstractmethod
    def delete(self, table: str, record_id: str) -> bool:
        """Delete by id. True if a row was removed."""
        ...

    @abstractmethod
    def delete_where(self, table: str, predicate: Callable[[Row], bool]) -> int:
        """Delete every row the predicate accepts. Returns the count."""
        ...


# =============================================================================
# Atomic JSON writes
# =============================================================================


def _fsync_dir(dir_path: Path) -> None:
    """
    Directory fsync where supported.

    Needed for the rename entry to be durable. Mostly effective on Linux.
    """
    try:
        dir_fd = os.open(str(dir_path), os.O_RDONLY | os.O_DIRECTORY)
        try:
            os.fsync(dir_fd)
        finally:
            os.close(dir_fd)
    except (OSError, AttributeError) as e:
        logger.warning(
            f"Directory fsync failed for {dir_path}: {e}. "
            f"Rename durability may not be guaranteed."
        )


def atomic_write_json(path: Path, data: Any) -> None:
    """
    Atomic JSON write.

    - No partial state: temp → rename
    - File and directory fsync where possible (warn and continue on failure)
    - Temp file removed on failure; the previous file is kept

    Args:
        path: target file
        data: JSON-serializable data
    """
    dir_path = path.parent
    dir_path.mkdir(parents=True, exist_ok=True)

    temp_path = None
    try:
        with tempfile.NamedTemporaryFile(
            mode="w",
            dir=dir_path,
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        ) as f:
            temp_path = Path(f.name)
            json.dump(data, f, indent=2, ensure_ascii=False)
            f.flush()
            try:
                os.fsync(f.fileno())
            except OSError as e:
                logger.warning(
                    f"File fsync failed for {path}: {e}. "
                    f"Data may not be durable on power loss."
                )

        os.replace(temp_path, path)
        _fsync_dir(dir_path)

    except Exception:
        if temp_path and temp_path.exists():
            try:
                temp_path.unlink()
            except OSError:
                pass
        raise


# =============================================================================
# JSON file backend
# =============================================================================


class JsonFileStore(RecordStore):
    """
    Filesystem store.

    Layout:
    data_dir/
    ├── <table>.json     # {"rows": [...]}
    └── .locks/<table>.lock
    """

    LOCK_TIMEOUT = 10.0

    def __init__(self, data_dir: Path):
        """
        Args:
            data_dir: directory holding one JSON file per table
        """
        self.data_dir = data_dir
        self._locks_dir = data_dir / ".locks"

    @contextmanager
    def _table_lock(self, table: str) -> Generator[None, None, None]:
        """
        Per-table lock.

        Raises:
            StoreError: STORE_LOCK_TIMEOUT
        """
        self._locks_dir.mkdir(parents=True, exist_ok=True)
        lock = FileLock(self._locks_dir / f"{table}.lock", timeout=self.LOCK_TIMEOUT)

        try:
            lock.acquire()
        except Timeout:
            raise StoreError(
                ErrorCodes.STORE_LOCK_TIMEOUT,
                f"Failed to acquire lock for table '{table}'",
                table=table,
                timeout=self.LOCK_TIMEOUT,
            ) from None
        try:
            yield
        finally:
            lock.release()

    def _table_path(self, table: str) -> Path:
        validate_table_name(table)
        return self.data_dir / f"{table}.json"

    def _read(self, table: str) -> list[Row]:
        path = self._table_path(table)
        if not path.exists():
            return []
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            raise StoreError(
                ErrorCodes.STORE_CORRUPT,
                f"Table file is not valid JSON: {path.name}",
                table=table,
            ) from e
        rows = data.get("rows") if isinstance(data, dict) else None
        if not isinstance(rows, list):
            raise StoreError(
                ErrorCodes.STORE_CORRUPT,
                f"Table file has no rows list: {path.name}",
                table=table,
            )
        return rows

    def _write(self, table: str, rows: list[Row]) -> None:
        atomic_write_json(self._table_path(table), {"rows": rows})

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
        rows = [copy.deepcopy(r) for r in self._read(table) if _matches(r, filters)]
        return _sort_rows(rows, order_by, descending)

    # =========================================================================
    # Write
    # =========================================================================

    def insert(self, table: str, values: Row) -> Row:
        now = utc_now_iso()
        row = {
            "created_at": now,
            **copy.deepcopy(values),
            "updated_at": now,
        }
        row.setdefault("id", generate_record_id())
        if not row["id"]:
            row["id"] = generate_record_id()

        with self._table_lock(table):
            rows = self._read(table)
            rows.append(row)
            self._write(table, rows)

        return copy.deepcopy(row)

    def update(self, table: str, record_id: str, values: Row) -> Row | None:
        changes = {k: v for k, v in copy.deepcopy(values).items() if k != "id"}

        with self._table_lock(table):
            rows = self._read(table)
            for row in rows:
                if row.get("id") == record_id:
                    row.update(changes)
                    row["updated_at"] = utc_now_iso()
                    self._write(table, rows)
                    return copy.deepcopy(row)
        return None

    def upsert(self, table: str, values: Row, on_conflict: tuple[str, ...]) -> Row:
        key = {k: values.get(k) for k in on_conflict}
        now = utc_now_iso()

        with self._table_lock(table):
            rows = self._read(table)
            for row in rows:
                if _matches(row, key):
                    row.update({k: v for k, v in copy.deepcopy(values).items() if k != "id"})
                    row["updated_at"] = now
                    self._write(table, rows)
                    return copy.deepcopy(row)

            row = {"created_at": now, **copy.deepcopy(values), "updated_at": now}
            if not row.get("id"):
                row["id"] = generate_record_id()
            rows.append(row)
            self._write(table, rows)
            return copy.deepcopy(row)

    def delete(self, table: str, record_id: str) -> bool:
        with self._table_lock(table):
            rows = self._read(table)
            kept = [r for r in rows if r.get("id") != record_id]
            if len(kept) == len(rows):
                return False
            self._write(table, kept)
            return True

    def delete_where(self, table: str, predicate: Callable[[Row], bool]) -> int:
        with self._table_lock(table):
            rows = self._read(table)
            kept = [r for r in rows if not predicate(r)]
            removed = len(rows) - len(kept)
            if removed:
                self._write(table, kept)
            return removed


# =============================================================================
# Factory
# =============================================================================


def create_store(config: dict, project_root: Path) -> RecordStore:
    """
    Store from config.

    storage.backend: "json" (default) | "supabase"
    storage.data_dir: JSON store directory, relative to the project root
    """
    storage = config.get("storage", {})
    backend = storage.get("backend", "json")

    if backend == "supabase":
        from src.core.supabase_store import SupabaseStore

        return SupabaseStore(
            url=storage.get("supabase_url"),
            key=storage.get("supabase_key"),
        )

    if backend != "json":
        raise StoreError(
            ErrorCodes.INVALID_FIELD_VALUE,
            f"Unknown storage backend: {backend!r}",
            backend=backend,
        )

    data_dir = Path(storage.get("data_dir", "data"))
    if not data_dir.is_absolute():
        data_dir = project_root / data_dir
    return JsonFileStore(data_dir)
