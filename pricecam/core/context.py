from __future__ import annotations

from dataclasses import dataclass

from pricecam.confidence.confidence import FrameSource
from pricecam.core.config import Settings
from pricecam.ocr.base_ocr import OCREngine
from pricecam.pipeline.pipeline import FrameProcessor
from pricecam.storage.history import HistoryStore
from pricecam.storage.settings_store import SettingsStore


@dataclass
class AppContext:
    """Everything a request needs, built once and passed in explicitly."""

    settings_store: SettingsStore
    history_store: HistoryStore
    frame_processor: FrameProcessor

    @classmethod
    def from_settings(cls, config: Settings, ocr_engine: OCREngine) -> AppContext:
        settings_store = SettingsStore(config.settings_path)
        history_store = HistoryStore(config.history_path, limit=config.history_limit)
        throttle = config.throttle_interval_ms / 1000 if config.throttle_enabled else None
        processor = FrameProcessor(
            ocr_engine,
            settings_store.current,
            confidence_threshold=config.confidence_threshold,
            source_thresholds={
                FrameSource.CAMERA: config.camera_confidence_threshold,
                FrameSource.PHOTO: config.photo_confidence_threshold,
            },
            size_filter_enabled=config.size_filter_enabled,
            filter_mode=config.filter_mode,
            dedup_distance=config.dedup_distance,
            single_flight=config.single_flight,
            throttle_interval=throttle,
        )
        return cls(
            settings_store=settings_store,
            history_store=history_store,
            frame_processor=processor,
        )

    async def close(self) -> None:
        await self.frame_processor.close()
