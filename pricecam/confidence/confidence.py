"""Confidence handling for detections.

Scores are clamped once, when a Detection is built. Filtering compares the
stored score against a threshold and never renormalizes.

Live camera frames are noisy, so they use a stricter threshold than a single
still photo the user picked.
"""
from __future__ import annotations

import enum
import logging
import math
from collections.abc import Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pricecam.extraction.numbers import Detection

logger = logging.getLogger(__name__)

DEFAULT_CONFIDENCE_THRESHOLD = 0.5


class FrameSource(str, enum.Enum):
    CAMERA = "camera"
    PHOTO = "photo"


SOURCE_CONFIDENCE_THRESHOLDS: dict[FrameSource, float] = {
    FrameSource.CAMERA: 0.9,
    FrameSource.PHOTO: 0.5,
}


def clamp_confidence(value: float) -> float:
    value = float(value)
    # NaN/inf are broken engine readings, never a pass
    if not math.isfinite(value):
        return 0.0
    return max(0.0, min(1.0, value))


def filter_by_confidence(detections: Sequence[Detection], threshold: float) -> list[Detection]:
    """Keep detections whose confidence is at least ``threshold`` (0.0 – 1.0)."""
    if not 0.0 <= threshold <= 1.0:
        raise ValueError(f"threshold must be within [0, 1], got {threshold!r}")

    kept = [d for d in detections if d.confidence >= threshold]
    logger.debug(
        "confidence_filter",
        extra={"threshold": threshold, "before": len(detections), "after": len(kept)},
    )
    return kept
