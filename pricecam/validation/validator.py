from __future__ import annotations

import logging
from collections.abc import Sequence

from pricecam.extraction.numbers import Detection
from pricecam.validation.rule_engine import FilterMode, PriceRuleEngine

logger = logging.getLogger(__name__)


class PriceFilter:
    def __init__(self, mode: FilterMode | str = FilterMode.BALANCED) -> None:
        self._rule_engine = PriceRuleEngine(mode)

    @property
    def mode(self) -> FilterMode:
        return self._rule_engine.mode

    def filter(self, detections: Sequence[Detection]) -> list[Detection]:
        """Keep plausible prices, largest first.

        The largest surviving number is taken as the main price on a tag.
        Equal values keep their input order.
        """
        kept = [d for d in detections if self._rule_engine.is_valid_price(d)]
        kept.sort(key=lambda d: d.value, reverse=True)
        logger.debug(
            "price_filter",
            extra={"mode": self.mode.value, "before": len(detections), "after": len(kept)},
        )
        return kept


def filter_prices(
    detections: Sequence[Detection],
    mode: FilterMode | str = FilterMode.BALANCED,
) -> list[Detection]:
    return PriceFilter(mode).filter(detections)


LARGE_TEXT_MIN_HEIGHT = 0.1


def filter_large_text(
    detections: Sequence[Detection],
    min_height: float = LARGE_TEXT_MIN_HEIGHT,
) -> list[Detection]:
    """Keep only detections taller than ``min_height`` of the image.

    Prices are usually the biggest print on a tag; this drops fine print.
    """
    kept = [d for d in detections if d.bounding_box.height > min_height]
    logger.debug(
        "size_filter",
        extra={"min_height": min_height, "before": len(detections), "after": len(kept)},
    )
    return kept
