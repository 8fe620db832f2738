from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    # Persistence
    data_dir: Path = Path("./data")
    history_file: str = "conversion_history.json"
    settings_file: str = "currency_settings.json"
    history_limit: int = 50

    # OCR provider: mock | paddleocr | aws_textract
    ocr_provider: str = "mock"
    paddle_lang: str = "en"
    paddle_use_gpu: bool = False

    # AWS Textract (only needed when ocr_provider=aws_textract)
    aws_region: str = "us-east-1"
    aws_access_key_id: str | None = None
    aws_secret_access_key: str | None = None

    # Detection pipeline
    filter_mode: str = "balanced"          # strict | balanced | lenient
    confidence_threshold: float = 0.5
    camera_confidence_threshold: float = 0.9
    photo_confidence_threshold: float = 0.5
    size_filter_enabled: bool = False     # keep only text taller than 1/10 of the image
    dedup_distance: float = 0.05

    # Frame gating
    single_flight: bool = True
    throttle_enabled: bool = False
    throttle_interval_ms: int = 100

    @property
    def history_path(self) -> Path:
        return self.data_dir / self.history_file

    @property
    def settings_path(self) -> Path:
        return self.data_dir / self.settings_file


settings = Settings()
