from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from pydantic import ValidationError

from pricecam.core.errors import SettingsValidationError, StorageError
from pricecam.models import CurrencySettings, utcnow
from pricecam.storage.files import atomic_write_bytes

logger = logging.getLogger(__name__)

_UNSET = object()


class SettingsStore:
    """Single last-write-wins settings record stored as JSON.

    The last loaded or saved record is kept in memory so the frame pipeline
    can read it on every frame without touching the disk.
    """

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)
        self._current: CurrencySettings | None | object = _UNSET

    def current(self) -> CurrencySettings | None:
        """The cached settings; reads the file only on first use."""
        if self._current is _UNSET:
            return self.load()
        return self._current

    def save(self, currency_settings: CurrencySettings) -> CurrencySettings:
        error = currency_settings.validation_error
        if error is not None:
            raise SettingsValidationError(error)

        stamped = currency_settings.model_copy(update={"last_updated": utcnow()})
        try:
            atomic_write_bytes(self._path, stamped.model_dump_json(indent=2).encode("utf-8"))
        except OSError as exc:
            raise StorageError(f"Could not write settings to {self._path}") from exc

        self._current = stamped
        logger.info(
            "settings_saved",
            extra={
                "foreign_currency": stamped.foreign_currency,
                "local_currency": stamped.local_currency,
                "exchange_rate": str(stamped.exchange_rate),
            },
        )
        return stamped

    def load(self) -> CurrencySettings | None:
        loaded = self._read()
        self._current = loaded
        return loaded

    async def asave(self, currency_settings: CurrencySettings) -> CurrencySettings:
        return await asyncio.to_thread(self.save, currency_settings)

    async def aload(self) -> CurrencySettings | None:
        return await asyncio.to_thread(self.load)

    def _read(self) -> CurrencySettings | None:
        try:
            data = self._path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError:
            logger.warning("settings_read_failed", extra={"path": str(self._path)}, exc_info=True)
            return None

        try:
            loaded = CurrencySettings.model_validate_json(data)
        except ValidationError:
            logger.warning("settings_corrupt_ignored", extra={"path": str(self._path)})
            return None
        return loaded if loaded.is_valid else None
