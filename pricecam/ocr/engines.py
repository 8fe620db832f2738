"""LocalOCREngine using PaddleOCR and CloudOCREngine using AWS Textract.

Both return one OCRObservation per recognized line, with the bounding box
normalized to the image size.
"""
from __future__ import annotations

import asyncio
import logging

from pricecam.ocr.base_ocr import BoundingBox, OCREngine, OCRObservation

logger = logging.getLogger(__name__)


def _clip(value: float) -> float:
    return max(0.0, min(1.0, value))


# ---------------------------------------------------------------------------
# LocalOCREngine (PaddleOCR)
# ---------------------------------------------------------------------------

class LocalOCREngine(OCREngine):
    """OCR engine backed by PaddleOCR (runs 100% locally, no cloud calls).

    Install dependency:
        pip install "pricecam[paddle]"

    Config (via .env):
        OCR_PROVIDER=paddleocr
        PADDLE_LANG=en      # language code: en | ch | japan | etc.
        PADDLE_USE_GPU=false
    """

    def __init__(self, lang: str = "en", use_gpu: bool = False) -> None:
        self._lang = lang
        self._use_gpu = use_gpu
        self._ocr = None   # lazy-init to avoid import cost at startup

    def _get_ocr(self):
        if self._ocr is None:
            try:
                from paddleocr import PaddleOCR  # type: ignore[import]
            except ModuleNotFoundError as exc:
                raise RuntimeError(
                    "PaddleOCR is not installed. Run: pip install paddlepaddle paddleocr"
                ) from exc
            self._ocr = PaddleOCR(
                use_angle_cls=True,
                lang=self._lang,
                use_gpu=self._use_gpu,
                show_log=False,
            )
        return self._ocr

    async def recognize(self, image_bytes: bytes) -> list[OCRObservation]:
        """Run PaddleOCR on *image_bytes* (PNG/JPEG) off the event loop."""
        return await asyncio.to_thread(self._run_paddle, image_bytes)

    def _run_paddle(self, image_bytes: bytes) -> list[OCRObservation]:
        import io

        import numpy as np
        from PIL import Image

        img = Image.open(io.BytesIO(image_bytes)).convert("RGB")
        width, height = img.size
        result = self._get_ocr().ocr(np.array(img), cls=True)

        observations: list[OCRObservation] = []
        if result and result[0]:
            for line in result[0]:
                # Each line: [polygon (4 pixel points), [text, confidence]]
                polygon, (text, conf) = line
                xs = [p[0] for p in polygon]
                ys = [p[1] for p in polygon]
                x0, y0 = _clip(min(xs) / width), _clip(min(ys) / height)
                x1, y1 = _clip(max(xs) / width), _clip(max(ys) / height)
                observations.append(
                    OCRObservation(
                        text=text,
                        bounding_box=BoundingBox(x=x0, y=y0, width=x1 - x0, height=y1 - y0),
                        confidence=float(conf),
                    )
                )

        logger.info("paddleocr_complete", extra={"lines": len(observations)})
        return observations


# ---------------------------------------------------------------------------
# CloudOCREngine (AWS Textract)
# ---------------------------------------------------------------------------

class CloudOCREngine(OCREngine):
    """OCR engine backed by AWS Textract DetectDocumentText.

    Config (via .env):
        OCR_PROVIDER=aws_textract
        AWS_REGION=us-east-1
        AWS_ACCESS_KEY_ID=...      (or use IAM role)
        AWS_SECRET_ACCESS_KEY=...

    Install dependency:
        pip install "pricecam[textract]"
    """

    def __init__(
        self,
        region: str = "us-east-1",
        aws_access_key_id: str | None = None,
        aws_secret_access_key: str | None = None,
    ) -> None:
        self._region = region
        self._access_key = aws_access_key_id
        self._secret_key = aws_secret_access_key
        self._client = None

    def _get_client(self):
        if self._client is None:
            try:
                import boto3  # type: ignore[import]
            except ModuleNotFoundError as exc:
                raise RuntimeError(
                    "boto3 is not installed. Run: pip install boto3"
                ) from exc
            kwargs: dict = {"region_name": self._region}
            if self._access_key:
                kwargs["aws_access_key_id"] = self._access_key
                kwargs["aws_secret_access_key"] = self._secret_key
            self._client = boto3.client("textract", **kwargs)
        return self._client

    async def recognize(self, image_bytes: bytes) -> list[OCRObservation]:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._call_textract, image_bytes)

    def _call_textract(self, image_bytes: bytes) -> list[OCRObservation]:
        client = self._get_client()
        response = client.detect_document_text(Document={"Bytes": image_bytes})

        observations: list[OCRObservation] = []
        for block in response.get("Blocks", []):
            if block["BlockType"] != "LINE":
                continue
            # Textract geometry is already a ratio of the page size.
            box = block.get("Geometry", {}).get("BoundingBox", {})
            observations.append(
                OCRObservation(
                    text=block.get("Text", ""),
                    bounding_box=BoundingBox(
                        x=float(box.get("Left", 0.0)),
                        y=float(box.get("Top", 0.0)),
                        width=float(box.get("Width", 0.0)),
                        height=float(box.get("Height", 0.0)),
                    ),
                    confidence=float(block.get("Confidence", 0)) / 100.0,
                )
            )

        logger.info("textract_complete", extra={"lines": len(observations)})
        return observations
