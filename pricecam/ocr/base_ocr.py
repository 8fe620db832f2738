from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class BoundingBox:
    """Rectangle in normalized image coordinates (fractions of width/height)."""

    x: float
    y: float
    width: float
    height: float

    @property
    def min_x(self) -> float:
        return self.x

    @property
    def min_y(self) -> float:
        return self.y

    @property
    def max_x(self) -> float:
        return self.x + self.width

    @property
    def max_y(self) -> float:
        return self.y + self.height

    @property
    def center(self) -> tuple[float, float]:
        return (self.x + self.width / 2, self.y + self.height / 2)

    @property
    def is_valid(self) -> bool:
        return (
            self.width > 0
            and self.height > 0
            and self.min_x >= 0
            and self.min_y >= 0
            and self.max_x <= 1.0
            and self.max_y <= 1.0
        )

    def to_pixels(self, width: float, height: float) -> tuple[float, float, float, float]:
        """Scale to an image of ``width`` x ``height`` pixels as (x, y, w, h)."""
        return (self.x * width, self.y * height, self.width * width, self.height * height)


@dataclass(frozen=True)
class OCRObservation:
    text: str
    bounding_box: BoundingBox
    confidence: float  # 0.0 to 1.0, as reported by the engine


class OCREngine:
    async def recognize(self, image_bytes: bytes) -> list[OCRObservation]:
        raise NotImplementedError
