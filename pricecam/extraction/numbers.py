"""Number extraction from recognized text.

Turns OCR observations into Detections: every numeric token found in an
observation's text becomes one Detection sharing that observation's bounding
box and (clamped) confidence.
"""
from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from pricecam.confidence.confidence import clamp_confidence
from pricecam.ocr.base_ocr import BoundingBox, OCRObservation

logger = logging.getLogger(__name__)

# Integers and decimals; no thousands separators, no currency symbols.
_NUMBER_RE = re.compile(r"-?\d+(?:\.\d+)?")


# ---------------------------------------------------------------------------
# Data model (shared with rest of app)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Detection:
    value: Decimal
    bounding_box: BoundingBox
    confidence: float  # clamped to 0.0 – 1.0

    def __post_init__(self) -> None:
        if not isinstance(self.value, Decimal):
            object.__setattr__(self, "value", Decimal(str(self.value)))
        object.__setattr__(self, "confidence", clamp_confidence(self.confidence))

    def meets_confidence_threshold(self, threshold: float = 0.5) -> bool:
        return self.confidence >= threshold

    @property
    def has_valid_bounding_box(self) -> bool:
        return self.bounding_box.is_valid


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------

def extract_numbers(text: str) -> list[str]:
    """Return numeric substrings of ``text`` in order of appearance."""
    if not text:
        return []
    return _NUMBER_RE.findall(text)


def _parse_decimal(token: str) -> Decimal | None:
    try:
        return Decimal(token)
    except InvalidOperation:
        return None


def build_detections(observations: Iterable[OCRObservation]) -> list[Detection]:
    detections: list[Detection] = []
    for obs in observations:
        for token in extract_numbers(obs.text):
            value = _parse_decimal(token)
            if value is None:
                continue
            detections.append(
                Detection(value=value, bounding_box=obs.bounding_box, confidence=obs.confidence)
            )

    logger.debug("detections_built", extra={"count": len(detections)})
    return detections
