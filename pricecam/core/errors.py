"""Error types raised by the pipeline and stores.

Conversion and recognition errors are per-operation and recoverable. Storage
errors are raised on write so a lost save is visible to the caller; unreadable
persisted data is handled inside the stores and never raised.

Display text is kept apart from the error types in ``user_message``.
"""
from __future__ import annotations

import enum


class PriceCamError(Exception):
    """Base class for all errors raised by this package."""


# ---------------------------------------------------------------------------
# Conversion
# ---------------------------------------------------------------------------

class ConversionError(PriceCamError):
    pass


class InvalidPriceError(ConversionError):
    def __init__(self, price) -> None:
        super().__init__(f"Invalid price: {price}")
        self.price = price


class InvalidRateError(ConversionError):
    def __init__(self, rate) -> None:
        super().__init__(f"Invalid rate: {rate}")
        self.rate = rate


# ---------------------------------------------------------------------------
# Recognition / storage
# ---------------------------------------------------------------------------

class RecognitionError(PriceCamError):
    """The OCR engine failed on a frame. The original exception is chained."""


class StorageError(PriceCamError):
    """Writing or clearing persisted data failed."""


# ---------------------------------------------------------------------------
# Settings validation
# ---------------------------------------------------------------------------

class SettingsErrorKind(str, enum.Enum):
    EMPTY_CURRENCY_NAME = "empty_currency_name"
    CURRENCY_NAME_TOO_LONG = "currency_name_too_long"
    EXCHANGE_RATE_NOT_POSITIVE = "exchange_rate_not_positive"
    EXCHANGE_RATE_TOO_LARGE = "exchange_rate_too_large"


class SettingsValidationError(PriceCamError):
    def __init__(self, kind: SettingsErrorKind) -> None:
        super().__init__(kind.value)
        self.kind = kind


# ---------------------------------------------------------------------------
# User-facing text
# ---------------------------------------------------------------------------

_SETTINGS_MESSAGES: dict[SettingsErrorKind, str] = {
    SettingsErrorKind.EMPTY_CURRENCY_NAME: "Currency name cannot be empty",
    SettingsErrorKind.CURRENCY_NAME_TOO_LONG: "Currency name must be 20 characters or less",
    SettingsErrorKind.EXCHANGE_RATE_NOT_POSITIVE: "Exchange rate must be greater than 0",
    SettingsErrorKind.EXCHANGE_RATE_TOO_LARGE: "Exchange rate must be 10000 or less",
}

_ERROR_MESSAGES: dict[type[PriceCamError], str] = {
    InvalidPriceError: "Detected price is not valid",
    InvalidRateError: "Exchange rate must be greater than 0",
    RecognitionError: "Text recognition failed, try again",
    StorageError: "Could not save, please try again",
}


def user_message(exc: PriceCamError) -> str:
    if isinstance(exc, SettingsValidationError):
        return _SETTINGS_MESSAGES[exc.kind]
    for cls in type(exc).__mro__:
        if cls in _ERROR_MESSAGES:
            return _ERROR_MESSAGES[cls]
    return "Something went wrong"
