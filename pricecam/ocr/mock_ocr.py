from __future__ import annotations

from pricecam.ocr.base_ocr import BoundingBox, OCREngine, OCRObservation


class MockOCREngine(OCREngine):
    async def recognize(self, image_bytes: bytes) -> list[OCRObservation]:
        # Mock OCR for development/testing: a shelf tag with a price, a pack
        # size and a product code.
        return [
            OCRObservation(
                text="¥1980",
                bounding_box=BoundingBox(x=0.30, y=0.40, width=0.30, height=0.08),
                confidence=0.95,
            ),
            OCRObservation(
                text="60 tablets",
                bounding_box=BoundingBox(x=0.30, y=0.55, width=0.20, height=0.03),
                confidence=0.90,
            ),
            OCRObservation(
                text="JAN 4901234567894",
                bounding_box=BoundingBox(x=0.10, y=0.85, width=0.50, height=0.02),
                confidence=0.80,
            ),
        ]
