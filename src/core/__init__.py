"""
Core layer: storage and pure interview logic.

Role:
- Record store (JSON files / Supabase), atomic writes, locks
- Scoring bands and result aggregation
- Facial metrics, question timer, ids, run logs
"""

from .ids import generate_record_id, generate_run_id, utc_now_iso
from .logging import create_run_log, emit_warning, save_run_log
from .store import JsonFileStore, RecordStore, StoreError, atomic_write_json, create_store

__all__ = [
    # store
    "RecordStore",
    "JsonFileStore",
    "StoreError",
    "atomic_write_json",
    "create_store",
    # ids
    "generate_record_id",
    "generate_run_id",
    "utc_now_iso",
    # logging
    "create_run_log",
    "emit_warning",
    "save_run_log",
]
