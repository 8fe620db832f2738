"""Shared pytest configuration and fixtures."""
from __future__ import annotations

import os
import tempfile
from decimal import Decimal

import pytest

# Provide env vars before any pricecam module is imported
os.environ.setdefault("OCR_PROVIDER", "mock")
os.environ.setdefault("DATA_DIR", tempfile.mkdtemp(prefix="pricecam-test-"))

from pricecam.extraction.numbers import Detection  # noqa: E402
from pricecam.ocr.base_ocr import BoundingBox  # noqa: E402


def make_detection(
    value: str | int,
    *,
    x: float = 0.2,
    y: float = 0.2,
    width: float = 0.2,
    height: float = 0.05,
    confidence: float = 0.95,
) -> Detection:
    return Detection(
        value=Decimal(str(value)),
        bounding_box=BoundingBox(x=x, y=y, width=width, height=height),
        confidence=confidence,
    )


@pytest.fixture
def detection_factory():
    return make_detection
