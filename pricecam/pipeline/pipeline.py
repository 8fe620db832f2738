"""Frame pipeline — orchestrates OCR → extraction → dedup → confidence → price filter → conversion.

Frames are gated before any work starts:
- Single-flight: while one frame is being processed, new frames are dropped
  (never queued) so latency stays bounded.
- Throttle (optional): a frame is refused if the previous processing started
  less than ``throttle_interval`` seconds ago.

The OCR call is the only await in the pipeline. It runs as a task owned by
the processor so ``close()`` can cancel it; nothing is delivered after close.
"""
from __future__ import annotations

import asyncio
import enum
import logging
import time
from collections.abc import Callable, Mapping

from pricecam.confidence.confidence import (
    DEFAULT_CONFIDENCE_THRESHOLD,
    SOURCE_CONFIDENCE_THRESHOLDS,
    FrameSource,
    filter_by_confidence,
)
from pricecam.conversion.engine import ConversionEngine
from pricecam.core.errors import PriceCamError, RecognitionError
from pricecam.extraction.dedup import DEFAULT_DEDUP_DISTANCE, deduplicate
from pricecam.extraction.numbers import Detection, build_detections
from pricecam.models import ConversionResult, CurrencySettings
from pricecam.ocr.base_ocr import OCREngine
from pricecam.validation.rule_engine import FilterMode
from pricecam.validation.validator import PriceFilter, filter_large_text

logger = logging.getLogger(__name__)

SettingsProvider = Callable[[], "CurrencySettings | None"]


class FrameState(str, enum.Enum):
    IDLE = "idle"
    PROCESSING = "processing"


class FrameProcessor:
    def __init__(
        self,
        ocr_engine: OCREngine,
        settings_provider: SettingsProvider,
        *,
        confidence_threshold: float = DEFAULT_CONFIDENCE_THRESHOLD,
        filter_mode: FilterMode | str = FilterMode.BALANCED,
        source_thresholds: Mapping[FrameSource, float] | None = None,
        size_filter_enabled: bool = False,
        dedup_distance: float = DEFAULT_DEDUP_DISTANCE,
        single_flight: bool = True,
        throttle_interval: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ocr_engine = ocr_engine
        self._settings_provider = settings_provider
        self._confidence_threshold = confidence_threshold
        self._source_thresholds = dict(SOURCE_CONFIDENCE_THRESHOLDS)
        if source_thresholds:
            self._source_thresholds.update(
                {FrameSource(k): v for k, v in source_thresholds.items()}
            )
        self.size_filter_enabled = size_filter_enabled
        self._price_filter = PriceFilter(filter_mode)
        self._dedup_distance = dedup_distance
        self._conversion_engine = ConversionEngine()

        self.single_flight = single_flight
        self.throttle_interval = throttle_interval
        self._clock = clock

        self._state = FrameState.IDLE
        self._last_started: float | None = None
        self._recognition_task: asyncio.Task | None = None
        self._closed = False

    @property
    def state(self) -> FrameState:
        return self._state

    @property
    def is_processing(self) -> bool:
        return self._state is FrameState.PROCESSING

    @property
    def closed(self) -> bool:
        return self._closed

    # ------------------------------------------------------------------ #
    #  Public entry point                                                  #
    # ------------------------------------------------------------------ #

    async def process_frame(
        self,
        image: bytes,
        source: FrameSource | str | None = None,
    ) -> ConversionResult | None:
        """Process one frame and return the conversion of its main price.

        ``source`` picks the confidence threshold of that capture profile
        (camera or photo); without it the processor's own threshold applies.

        Returns None when the frame was skipped by a gate, when no plausible
        price was found, or when no currency settings are configured.
        Raises RecognitionError or ConversionError for a failed frame; the
        processor stays usable for the next one.
        """
        if not self.can_accept():
            return None

        self._state = FrameState.PROCESSING
        self._last_started = self._clock()
        t0 = time.monotonic()
        try:
            # ── Step 1: OCR ───────────────────────────────────────────
            observations = await self._recognize(image)
            if observations is None:
                return None

            # ── Step 2: Detections ────────────────────────────────────
            detections = build_detections(observations)
            unique = deduplicate(detections, self._dedup_distance)
            confident = filter_by_confidence(unique, self.threshold_for(source))
            if self.size_filter_enabled:
                confident = filter_large_text(confident)
            prices = self._price_filter.filter(confident)
            logger.debug(
                "detections_filtered",
                extra={
                    "source": FrameSource(source).value if source else None,
                    "extracted": len(detections),
                    "deduplicated": len(unique),
                    "confident": len(confident),
                    "priced": len(prices),
                },
            )
            if not prices:
                return None

            # ── Step 3: Conversion ────────────────────────────────────
            result = self._convert(prices[0])
            if result is not None:
                logger.info(
                    "frame_processed",
                    extra={
                        "detected_price": str(result.detected_price),
                        "converted_amount": str(result.converted_amount),
                        "duration_ms": int((time.monotonic() - t0) * 1000),
                    },
                )
            return result
        finally:
            self._state = FrameState.IDLE

    async def close(self) -> None:
        """Stop accepting frames and cancel any in-flight recognition."""
        self._closed = True
        task = self._recognition_task
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
            except Exception:
                logger.debug("recognition_failed_during_close", exc_info=True)
        logger.info("frame_processor_closed")

    def threshold_for(self, source: FrameSource | str | None = None) -> float:
        if source is None:
            return self._confidence_threshold
        return self._source_thresholds[FrameSource(source)]

    # ------------------------------------------------------------------ #
    #  Gates                                                               #
    # ------------------------------------------------------------------ #

    def can_accept(self) -> bool:
        """Whether a frame submitted now would pass the gates."""
        if self._closed:
            logger.debug("frame_refused_closed")
            return False

        if self.single_flight and self._state is FrameState.PROCESSING:
            logger.debug("frame_dropped_busy")
            return False

        if self.throttle_interval and self._last_started is not None:
            elapsed = self._clock() - self._last_started
            if elapsed < self.throttle_interval:
                logger.debug("frame_throttled", extra={"elapsed_s": round(elapsed, 4)})
                return False

        return True

    # ------------------------------------------------------------------ #
    #  Steps                                                               #
    # ------------------------------------------------------------------ #

    async def _recognize(self, image: bytes):
        task = asyncio.ensure_future(self._ocr_engine.recognize(image))
        self._recognition_task = task
        try:
            observations = await task
        except asyncio.CancelledError:
            if self._closed:
                return None
            raise
        except Exception as exc:
            logger.warning("recognition_failed", extra={"error": str(exc)})
            raise RecognitionError(str(exc) or type(exc).__name__) from exc
        finally:
            if self._recognition_task is task:
                self._recognition_task = None

        if self._closed:
            return None
        return observations

    def _convert(self, detection: Detection) -> ConversionResult | None:
        currency = self._settings_provider()
        if currency is None:
            logger.warning("no_currency_settings")
            return None

        converted = self._conversion_engine.convert_price(
            detection.value,
            currency.foreign_currency,
            currency.local_currency,
            currency.exchange_rate,
        )
        return ConversionResult(
            detected_price=detection.value,
            converted_amount=converted,
            source_currency=currency.foreign_currency,
            target_currency=currency.local_currency,
            exchange_rate=currency.exchange_rate,
            confidence=detection.confidence,
        )


# ---------------------------------------------------------------------------
# Push-style delivery
# ---------------------------------------------------------------------------

ResultHandler = Callable[[ConversionResult], None]
ErrorHandler = Callable[[PriceCamError], None]


class FrameProcessingController:
    """Feeds frames from a producer into a FrameProcessor without blocking it.

    Frames go through a queue of capacity 1. ``submit`` never waits: if a
    frame is pending, being processed or throttled, the new frame is dropped.
    A failing observer callback is logged and never stops the worker.
    """

    def __init__(
        self,
        processor: FrameProcessor,
        on_result: ResultHandler,
        on_error: ErrorHandler | None = None,
        *,
        source: FrameSource | str | None = FrameSource.CAMERA,
    ) -> None:
        self._processor = processor
        self._source = source
        self._on_result = on_result
        self._on_error = on_error
        self._queue: asyncio.Queue[bytes] = asyncio.Queue(maxsize=1)
        self._worker: asyncio.Task | None = None
        self.dropped_frames = 0

    def start(self) -> None:
        if self._worker is None:
            self._worker = asyncio.get_running_loop().create_task(self._run())

    def submit(self, image: bytes) -> bool:
        # Same gates the processor applies (closed, busy, throttle)
        if not self._processor.can_accept():
            self.dropped_frames += 1
            return False
        try:
            self._queue.put_nowait(image)
        except asyncio.QueueFull:
            self.dropped_frames += 1
            return False
        return True

    async def close(self) -> None:
        await self._processor.close()
        if self._worker is not None:
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
            self._worker = None
        logger.info("frame_controller_closed", extra={"dropped_frames": self.dropped_frames})

    async def _run(self) -> None:
        while not self._processor.closed:
            image = await self._queue.get()
            try:
                result = await self._processor.process_frame(image, self._source)
            except PriceCamError as exc:
                if self._on_error is not None and not self._processor.closed:
                    self._notify(self._on_error, exc)
                continue
            except Exception:
                logger.exception("frame_processing_failed")
                continue
            finally:
                self._queue.task_done()

            if result is not None and not self._processor.closed:
                self._notify(self._on_result, result)

    @staticmethod
    def _notify(callback: Callable, payload) -> None:
        try:
            callback(payload)
        except Exception:
            logger.exception("frame_observer_failed")
