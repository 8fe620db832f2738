from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel


class ConversionResultOut(BaseModel):
    id: uuid.UUID
    detected_price: Decimal
    converted_amount: Decimal
    source_currency: str
    target_currency: str
    exchange_rate: Decimal
    confidence: float
    timestamp: datetime
    formatted_amount: str | None = None


class FrameResponse(BaseModel):
    status: Literal["processed", "skipped", "no_price"]
    result: ConversionResultOut | None = None


class ConvertRequest(BaseModel):
    price: Decimal
    rate: Decimal


class ConvertResponse(BaseModel):
    price: Decimal
    rate: Decimal
    converted_amount: Decimal


class CurrencySettingsIn(BaseModel):
    foreign_currency: str
    local_currency: str
    exchange_rate: Decimal


class SaveConversionRequest(BaseModel):
    """A conversion result the user chose to keep."""
    detected_price: Decimal
    converted_amount: Decimal
    source_currency: str
    target_currency: str
    exchange_rate: Decimal
    timestamp: datetime | None = None
