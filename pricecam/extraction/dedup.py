from __future__ import annotations

import logging
import math
from collections.abc import Sequence

from pricecam.extraction.numbers import Detection

logger = logging.getLogger(__name__)

DEFAULT_DEDUP_DISTANCE = 0.05


def deduplicate(detections: Sequence[Detection], distance: float = DEFAULT_DEDUP_DISTANCE) -> list[Detection]:
    """Drop detections whose box center lies within ``distance`` of an earlier one.

    Detections are visited in input order and the first one at a location
    wins, so the output keeps the relative order of first occurrences.
    Distances are measured between bounding-box centers in normalized units.
    """
    unique: list[Detection] = []
    for detection in detections:
        cx, cy = detection.bounding_box.center
        is_duplicate = any(
            math.hypot(cx - ex, cy - ey) < distance
            for ex, ey in (u.bounding_box.center for u in unique)
        )
        if not is_duplicate:
            unique.append(detection)

    logger.debug("deduplicated", extra={"before": len(detections), "after": len(unique)})
    return unique
