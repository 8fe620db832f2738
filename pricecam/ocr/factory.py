from __future__ import annotations

from pricecam.core.config import settings
from pricecam.ocr.base_ocr import OCREngine
from pricecam.ocr.mock_ocr import MockOCREngine


def get_ocr_engine() -> OCREngine:
    """Return the configured OCR engine instance.

    OCR_PROVIDER options:
        mock         — canned price-tag observations (dev/test, no deps required)
        paddleocr    — LocalOCREngine (pip install "pricecam[paddle]")
        aws_textract — CloudOCREngine (pip install "pricecam[textract]" + AWS credentials)
    """
    provider = settings.ocr_provider.lower().strip()

    if provider == "mock":
        return MockOCREngine()

    if provider == "paddleocr":
        from pricecam.ocr.engines import LocalOCREngine
        return LocalOCREngine(lang=settings.paddle_lang, use_gpu=settings.paddle_use_gpu)

    if provider == "aws_textract":
        from pricecam.ocr.engines import CloudOCREngine
        return CloudOCREngine(
            region=settings.aws_region,
            aws_access_key_id=settings.aws_access_key_id,
            aws_secret_access_key=settings.aws_secret_access_key,
        )

    raise ValueError(f"Unknown OCR_PROVIDER={settings.ocr_provider!r}")
