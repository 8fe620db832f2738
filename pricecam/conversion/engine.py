"""Currency conversion arithmetic.

All amounts are ``Decimal``. ``convert`` multiplies at full precision and
never rounds; rounding and formatting are separate, display-side helpers.
"""
from __future__ import annotations

import logging
from decimal import ROUND_HALF_UP, Decimal, localcontext

from pricecam.core.errors import InvalidPriceError, InvalidRateError

logger = logging.getLogger(__name__)

_TWO_PLACES = Decimal("0.01")


def _to_decimal(value) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value))


def convert(price: Decimal, rate: Decimal) -> Decimal:
    price = _to_decimal(price)
    rate = _to_decimal(rate)

    if price < 0:
        raise InvalidPriceError(price)
    if rate <= 0:
        raise InvalidRateError(rate)
    if price == 0:
        return Decimal(0)

    # Exact product: enough digits for both operands, no context rounding.
    digits = len(price.as_tuple().digits) + len(rate.as_tuple().digits)
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, digits)
        return price * rate


class ConversionEngine:
    def convert_price(
        self,
        price: Decimal,
        source_currency: str,
        target_currency: str,
        rate: Decimal,
    ) -> Decimal:
        try:
            result = convert(price, rate)
        except (InvalidPriceError, InvalidRateError) as exc:
            logger.error("conversion_invalid_input", extra={"error": str(exc)})
            raise

        logger.debug(
            "conversion_complete",
            extra={
                "price": str(price),
                "source": source_currency,
                "target": target_currency,
                "rate": str(rate),
                "result": str(result),
            },
        )
        return result

    @staticmethod
    def round_to_two_decimals(amount: Decimal) -> Decimal:
        return _to_decimal(amount).quantize(_TWO_PLACES, rounding=ROUND_HALF_UP)

    @staticmethod
    def calculate_difference(original: Decimal, converted: Decimal) -> Decimal:
        """Relative change from ``original`` to ``converted`` in percent."""
        original = _to_decimal(original)
        if original == 0:
            return Decimal(0)
        return (_to_decimal(converted) - original) / original * 100

    @staticmethod
    def format_result(amount: Decimal, currency: str) -> str:
        """e.g. ``1,234.5678 TWD``; 2 to 4 fraction digits, grouped thousands."""
        amount = _to_decimal(amount).quantize(Decimal("0.0001"), rounding=ROUND_HALF_UP)
        text = f"{amount:,.4f}"
        whole, frac = text.split(".")
        frac = frac.rstrip("0").ljust(2, "0")
        return f"{whole}.{frac} {currency}"
