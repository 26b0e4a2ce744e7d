from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


ImageProcessing = Literal["original", "remove-background"]
FrameLayout = Literal["auto", "grid", "list"]


class ProcessingSettings(BaseModel):
    """Per-run options sent by the UI along with each command."""

    batch_size: int = Field(default=10, gt=0, alias="batchSize")
    image_processing: ImageProcessing = Field(default="original", alias="imageProcessing")
    frame_layout: FrameLayout = Field(default="auto", alias="frameLayout")

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")
