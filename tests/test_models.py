"""Domain model and settings store tests."""
from __future__ import annotations

import uuid
from datetime import datetime, timezone
from decimal import Decimal

import pytest
from pydantic import ValidationError

from pricecam.core.errors import (
    InvalidRateError,
    RecognitionError,
    SettingsErrorKind,
    SettingsValidationError,
    StorageError,
    user_message,
)
from pricecam.models import ConversionRecord, ConversionResult, CurrencySettings
from pricecam.storage.settings_store import SettingsStore


def _settings(**kwargs) -> CurrencySettings:
    defaults = dict(foreign_currency="JPY", local_currency="TWD", exchange_rate=Decimal("0.22"))
    defaults.update(kwargs)
    return CurrencySettings(**defaults)


# ---------------------------------------------------------------------------
# CurrencySettings validation
# ---------------------------------------------------------------------------

def test_settings_valid() -> None:
    assert _settings().is_valid
    assert _settings(exchange_rate=Decimal(10000)).is_valid
    assert _settings(foreign_currency="X" * 20).is_valid


@pytest.mark.parametrize(
    "kwargs, kind",
    [
        ({"foreign_currency": ""}, SettingsErrorKind.EMPTY_CURRENCY_NAME),
        ({"local_currency": ""}, SettingsErrorKind.EMPTY_CURRENCY_NAME),
        ({"foreign_currency": "X" * 21}, SettingsErrorKind.CURRENCY_NAME_TOO_LONG),
        ({"exchange_rate": Decimal(0)}, SettingsErrorKind.EXCHANGE_RATE_NOT_POSITIVE),
        ({"exchange_rate": Decimal(-2)}, SettingsErrorKind.EXCHANGE_RATE_NOT_POSITIVE),
        ({"exchange_rate": Decimal("10000.01")}, SettingsErrorKind.EXCHANGE_RATE_TOO_LARGE),
    ],
)
def test_settings_invalid(kwargs: dict, kind: SettingsErrorKind) -> None:
    s = _settings(**kwargs)
    assert not s.is_valid
    assert s.validation_error is kind


# ---------------------------------------------------------------------------
# ConversionResult / ConversionRecord
# ---------------------------------------------------------------------------

def _result(**kwargs) -> ConversionResult:
    defaults = dict(
        detected_price=Decimal(3500),
        converted_amount=Decimal("770.00"),
        source_currency="JPY",
        target_currency="TWD",
        exchange_rate=Decimal("0.22"),
        confidence=0.9,
    )
    defaults.update(kwargs)
    return ConversionResult(**defaults)


def test_result_confidence_clamped() -> None:
    assert _result(confidence=1.5).confidence == 1.0
    assert _result(confidence=-0.5).confidence == 0.0


def test_result_ids_unique() -> None:
    assert _result().id != _result().id


def test_result_to_record_snapshots_rate() -> None:
    result = _result()
    record = result.to_record()
    assert record.original_price == Decimal(3500)
    assert record.converted_amount == Decimal("770.00")
    assert record.foreign_currency == "JPY"
    assert record.local_currency == "TWD"
    assert record.exchange_rate == Decimal("0.22")
    assert record.timestamp == result.timestamp
    assert isinstance(record.id, uuid.UUID)


def test_record_is_immutable() -> None:
    record = _result().to_record()
    with pytest.raises(ValidationError):
        record.exchange_rate = Decimal(1)


def test_record_naive_timestamp_assumed_utc() -> None:
    record = ConversionRecord(
        original_price=Decimal(1),
        converted_amount=Decimal(1),
        foreign_currency="A",
        local_currency="B",
        exchange_rate=Decimal(1),
        timestamp=datetime(2025, 1, 1, 12, 0),
    )
    assert record.timestamp.tzinfo is timezone.utc


# ---------------------------------------------------------------------------
# user_message
# ---------------------------------------------------------------------------

def test_user_message_mapping() -> None:
    assert user_message(SettingsValidationError(SettingsErrorKind.EMPTY_CURRENCY_NAME)) == (
        "Currency name cannot be empty"
    )
    assert "Exchange rate" in user_message(InvalidRateError(Decimal(0)))
    assert "recognition" in user_message(RecognitionError("boom")).lower()
    assert user_message(StorageError("disk full")) == "Could not save, please try again"


# ---------------------------------------------------------------------------
# SettingsStore
# ---------------------------------------------------------------------------

def test_settings_store_round_trip(tmp_path) -> None:
    store = SettingsStore(tmp_path / "settings.json")
    old = datetime(2020, 1, 1, tzinfo=timezone.utc)
    saved = store.save(_settings(last_updated=old))

    assert saved.last_updated > old
    loaded = store.load()
    assert loaded == saved


def test_settings_store_missing_file(tmp_path) -> None:
    assert SettingsStore(tmp_path / "nope.json").load() is None


def test_settings_store_refuses_invalid(tmp_path) -> None:
    path = tmp_path / "settings.json"
    store = SettingsStore(path)
    with pytest.raises(SettingsValidationError) as exc_info:
        store.save(_settings(exchange_rate=Decimal(0)))
    assert exc_info.value.kind is SettingsErrorKind.EXCHANGE_RATE_NOT_POSITIVE
    assert not path.exists()


def test_settings_store_last_write_wins(tmp_path) -> None:
    store = SettingsStore(tmp_path / "settings.json")
    store.save(_settings(exchange_rate=Decimal("0.22")))
    store.save(_settings(foreign_currency="USD", exchange_rate=Decimal("32.1")))
    loaded = store.load()
    assert loaded is not None
    assert loaded.foreign_currency == "USD"
    assert loaded.exchange_rate == Decimal("32.1")


def test_settings_store_corrupt_file(tmp_path) -> None:
    path = tmp_path / "settings.json"
    path.write_text("{not json", encoding="utf-8")
    assert SettingsStore(path).load() is None


def test_settings_store_current_is_cached(tmp_path) -> None:
    path = tmp_path / "settings.json"
    store = SettingsStore(path)
    assert store.current() is None

    saved = store.save(_settings())
    path.unlink()
    # Served from memory, no file read
    assert store.current() == saved


def test_settings_store_current_reads_file_once(tmp_path) -> None:
    path = tmp_path / "settings.json"
    SettingsStore(path).save(_settings(foreign_currency="USD"))

    store = SettingsStore(path)
    first = store.current()
    assert first is not None
    assert first.foreign_currency == "USD"
    path.write_text("{not json", encoding="utf-8")
    assert store.current() == first
    # An explicit load refreshes the cache
    assert store.load() is None
    assert store.current() is None


@pytest.mark.asyncio
async def test_settings_store_async_wrappers(tmp_path) -> None:
    store = SettingsStore(tmp_path / "settings.json")
    saved = await store.asave(_settings())
    assert await store.aload() == saved
    with pytest.raises(SettingsValidationError):
        await store.asave(_settings(foreign_currency=""))
    assert store.current() == saved
