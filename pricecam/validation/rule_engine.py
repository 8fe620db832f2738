from __future__ import annotations

import enum
import logging
from dataclasses import dataclass
from decimal import Decimal

from pricecam.extraction.numbers import Detection

logger = logging.getLogger(__name__)


class FilterMode(str, enum.Enum):
    STRICT = "strict"
    BALANCED = "balanced"
    LENIENT = "lenient"


@dataclass(frozen=True)
class ModeLimits:
    min_price: Decimal
    max_price: Decimal
    min_box_height: float  # fraction of image height


MODE_LIMITS: dict[FilterMode, ModeLimits] = {
    FilterMode.STRICT: ModeLimits(Decimal(50), Decimal(500_000), 0.025),
    FilterMode.BALANCED: ModeLimits(Decimal(10), Decimal(1_000_000), 0.015),
    FilterMode.LENIENT: ModeLimits(Decimal(1), Decimal(10_000_000), 0.008),
}

# Pill/tablet pack counts that show up on shelves next to prices
COMMON_CAPACITIES = (30, 60, 90, 120, 180, 270, 360)
CAPACITY_TOLERANCE = 3

PRICE_ENDINGS_TWO_DIGIT = frozenset({0, 50, 80, 90, 98, 99})
PRICE_ENDINGS_ONE_DIGIT = frozenset({0, 8, 9})


@dataclass(frozen=True)
class RuleResult:
    rule_name: str
    passed: bool
    message: str | None = None


def has_price_ending(value: Decimal) -> bool:
    n = int(value)
    return n % 100 in PRICE_ENDINGS_TWO_DIGIT or n % 10 in PRICE_ENDINGS_ONE_DIGIT


def _is_sequential_or_repetitive(digits: list[int]) -> bool:
    if len(digits) < 4:
        return False
    if len(set(digits)) == 1:
        return True
    pairs = list(zip(digits, digits[1:]))
    increasing = all(b == a + 1 for a, b in pairs)
    decreasing = all(b == a - 1 for a, b in pairs)
    return increasing or decreasing


def looks_like_date_or_code(value: Decimal) -> bool:
    n = int(value)

    # Year
    if 2020 <= n <= 2030:
        return True

    # MMDD
    if 101 <= n <= 1231:
        month, day = divmod(n, 100)
        if 1 <= month <= 12 and 1 <= day <= 31:
            return True

    # Batch / serial number
    if 10000 <= n <= 99999:
        if _is_sequential_or_repetitive([int(c) for c in str(n)]):
            return True

    return False


class PriceRuleEngine:
    """Decides whether a single detection looks like a merchandise price.

    Rules run in a fixed order and the first failure rejects:
    range, common_capacity, price_ending, box_height, date_or_code.
    """

    def __init__(self, mode: FilterMode | str = FilterMode.BALANCED) -> None:
        self.mode = FilterMode(mode)
        self.limits = MODE_LIMITS[self.mode]

    def evaluate(self, detection: Detection) -> list[RuleResult]:
        """Run rules until one fails. The last entry is the failing rule, if any."""
        value = detection.value
        ending = has_price_ending(value)

        results: list[RuleResult] = []
        for check in (
            lambda: self._validate_range(value),
            lambda: self._validate_not_capacity(value),
            lambda: self._validate_price_ending(value, ending),
            lambda: self._validate_box_height(detection, ending),
            lambda: self._validate_not_date_or_code(value),
        ):
            result = check()
            results.append(result)
            if not result.passed:
                logger.debug(
                    "price_rejected",
                    extra={"rule": result.rule_name, "value": str(value), "mode": self.mode.value},
                )
                break
        return results

    def is_valid_price(self, detection: Detection) -> bool:
        return all(r.passed for r in self.evaluate(detection))

    def _validate_range(self, value: Decimal) -> RuleResult:
        lo, hi = self.limits.min_price, self.limits.max_price
        if lo <= value <= hi:
            return RuleResult(rule_name="range", passed=True)
        return RuleResult(
            rule_name="range",
            passed=False,
            message=f"{value} not in [{lo}, {hi}]",
        )

    def _validate_not_capacity(self, value: Decimal) -> RuleResult:
        for capacity in COMMON_CAPACITIES:
            if abs(value - capacity) <= CAPACITY_TOLERANCE:
                return RuleResult(
                    rule_name="common_capacity",
                    passed=False,
                    message=f"{value} is close to pack size {capacity}",
                )
        return RuleResult(rule_name="common_capacity", passed=True)

    def _validate_price_ending(self, value: Decimal, ending: bool) -> RuleResult:
        if self.mode is FilterMode.LENIENT:
            return RuleResult(rule_name="price_ending", passed=True, message="Skipped: lenient mode")

        if not ending and value < 1000:
            return RuleResult(
                rule_name="price_ending",
                passed=False,
                message=f"{value} has no price-like ending",
            )
        return RuleResult(rule_name="price_ending", passed=True)

    def _validate_box_height(self, detection: Detection, ending: bool) -> RuleResult:
        # Stylized price text may be drawn small; trust the ending instead.
        likely_price = ending and 100 <= detection.value <= 100_000
        if likely_price:
            return RuleResult(rule_name="box_height", passed=True, message="Skipped: likely price")

        height = detection.bounding_box.height
        if height < self.limits.min_box_height:
            return RuleResult(
                rule_name="box_height",
                passed=False,
                message=f"height {height} < {self.limits.min_box_height}",
            )
        return RuleResult(rule_name="box_height", passed=True)

    def _validate_not_date_or_code(self, value: Decimal) -> RuleResult:
        if looks_like_date_or_code(value):
            return RuleResult(
                rule_name="date_or_code",
                passed=False,
                message=f"{value} looks like a date or product code",
            )
        return RuleResult(rule_name="date_or_code", passed=True)
