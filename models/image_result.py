from __future__ import annotations

from typing import Literal, Tuple, Union

from pydantic import BaseModel, ConfigDict


RGB = Tuple[float, float, float]

PLACEHOLDER_FILL: RGB = (0.9, 0.9, 0.9)
PLACEHOLDER_STROKE: RGB = (0.6, 0.6, 0.6)
PLACEHOLDER_TEXT: RGB = (0.2, 0.2, 0.2)


class ImageFill(BaseModel):
    """A registered image ready to be used as a shape's fill."""

    kind: Literal["image"] = "image"
    image_hash: str
    source_url: str
    background_removed: bool = False
    from_cache: bool = False

    model_config = ConfigDict(frozen=True)


class PlaceholderFill(BaseModel):
    """Initials placeholder used when there is no usable image."""

    kind: Literal["placeholder"] = "placeholder"
    initials: str
    reason: str
    fill_color: RGB = PLACEHOLDER_FILL
    stroke_color: RGB = PLACEHOLDER_STROKE
    text_color: RGB = PLACEHOLDER_TEXT
    stroke_weight: float = 1.0

    model_config = ConfigDict(frozen=True)

    @staticmethod
    def font_size_for(width: float, height: float) -> float:
        return round(min(width, height) * 0.4, 2)


ImageApplyResult = Union[ImageFill, PlaceholderFill]
