"""Domain models for currency settings, conversion results and history records."""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from pricecam.confidence.confidence import clamp_confidence
from pricecam.core.errors import SettingsErrorKind

MAX_CURRENCY_NAME_LENGTH = 20
MAX_EXCHANGE_RATE = Decimal(10000)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CurrencySettings(BaseModel):
    """User-chosen currency pair and rate (1 foreign unit = ``exchange_rate`` local units).

    Construction does not validate; ``validation_error`` is a pure function of
    the fields and the settings store refuses to persist anything invalid.
    """

    model_config = ConfigDict(frozen=True)

    foreign_currency: str
    local_currency: str
    exchange_rate: Decimal
    last_updated: datetime = Field(default_factory=utcnow)

    @property
    def validation_error(self) -> SettingsErrorKind | None:
        for name in (self.foreign_currency, self.local_currency):
            if not name:
                return SettingsErrorKind.EMPTY_CURRENCY_NAME
            if len(name) > MAX_CURRENCY_NAME_LENGTH:
                return SettingsErrorKind.CURRENCY_NAME_TOO_LONG
        if self.exchange_rate <= 0:
            return SettingsErrorKind.EXCHANGE_RATE_NOT_POSITIVE
        if self.exchange_rate > MAX_EXCHANGE_RATE:
            return SettingsErrorKind.EXCHANGE_RATE_TOO_LARGE
        return None

    @property
    def is_valid(self) -> bool:
        return self.validation_error is None


class ConversionRecord(BaseModel):
    """A saved conversion. ``exchange_rate`` is the rate at save time."""

    model_config = ConfigDict(frozen=True)

    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    original_price: Decimal
    converted_amount: Decimal
    foreign_currency: str
    local_currency: str
    exchange_rate: Decimal
    timestamp: datetime = Field(default_factory=utcnow)

    @field_validator("timestamp")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        # Naive and aware datetimes cannot be ordered against each other.
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


@dataclass(frozen=True)
class ConversionResult:
    detected_price: Decimal
    converted_amount: Decimal
    source_currency: str
    target_currency: str
    exchange_rate: Decimal
    confidence: float
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    timestamp: datetime = field(default_factory=utcnow)

    def __post_init__(self) -> None:
        object.__setattr__(self, "confidence", clamp_confidence(self.confidence))

    def to_record(self) -> ConversionRecord:
        return ConversionRecord(
            original_price=self.detected_price,
            converted_amount=self.converted_amount,
            foreign_currency=self.source_currency,
            local_currency=self.target_currency,
            exchange_rate=self.exchange_rate,
            timestamp=self.timestamp,
        )
