"""Conversion history persisted as a JSON array on disk.

The file always holds at most ``limit`` records sorted newest first. Every
``add_record`` is one read-modify-write under a lock, and the file is
replaced whole so an interrupted write never damages the previous contents.
A missing or unreadable file reads as an empty history.
"""
from __future__ import annotations

import asyncio
import logging
import threading
from pathlib import Path

from pydantic import TypeAdapter, ValidationError

from pricecam.core.errors import StorageError
from pricecam.models import ConversionRecord
from pricecam.storage.files import atomic_write_bytes

logger = logging.getLogger(__name__)

MAX_HISTORY_COUNT = 50

_records_adapter = TypeAdapter(list[ConversionRecord])


class HistoryStore:
    def __init__(self, path: Path | str, limit: int = MAX_HISTORY_COUNT) -> None:
        if limit < 1:
            raise ValueError(f"limit must be positive, got {limit!r}")
        self._path = Path(path)
        self._limit = limit
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    # ------------------------------------------------------------------ #
    #  Public API                                                          #
    # ------------------------------------------------------------------ #

    def add_record(self, record: ConversionRecord) -> None:
        with self._lock:
            history = self._read_raw()
            history.append(record)
            history.sort(key=lambda r: r.timestamp, reverse=True)
            pruned = len(history) - self._limit
            history = history[: self._limit]
            self._write(history)

        logger.info(
            "history_record_added",
            extra={"record_id": str(record.id), "count": len(history), "pruned": max(0, pruned)},
        )

    def load_history(self) -> list[ConversionRecord]:
        with self._lock:
            history = self._read_raw()
        history.sort(key=lambda r: r.timestamp, reverse=True)
        return history

    def clear_history(self) -> None:
        with self._lock:
            try:
                self._path.unlink(missing_ok=True)
            except OSError as exc:
                raise StorageError(f"Could not clear history at {self._path}") from exc
        logger.info("history_cleared", extra={"path": str(self._path)})

    # Async callers: run the blocking file work off the event loop.

    async def aadd_record(self, record: ConversionRecord) -> None:
        await asyncio.to_thread(self.add_record, record)

    async def aload_history(self) -> list[ConversionRecord]:
        return await asyncio.to_thread(self.load_history)

    async def aclear_history(self) -> None:
        await asyncio.to_thread(self.clear_history)

    # ------------------------------------------------------------------ #
    #  File helpers (caller holds the lock)                                #
    # ------------------------------------------------------------------ #

    def _read_raw(self) -> list[ConversionRecord]:
        try:
            data = self._path.read_bytes()
        except FileNotFoundError:
            return []
        except OSError:
            logger.warning("history_read_failed", extra={"path": str(self._path)}, exc_info=True)
            return []

        try:
            return _records_adapter.validate_json(data)
        except ValidationError as exc:
            logger.warning(
                "history_corrupt_treated_as_empty",
                extra={"path": str(self._path), "error_count": exc.error_count()},
            )
            return []

    def _write(self, history: list[ConversionRecord]) -> None:
        try:
            payload = _records_adapter.dump_json(history, indent=2)
            atomic_write_bytes(self._path, payload)
        except (OSError, ValueError) as exc:
            logger.error("history_write_failed", extra={"path": str(self._path), "error": str(exc)})
            raise StorageError(f"Could not write history to {self._path}") from exc
