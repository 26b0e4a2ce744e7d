from __future__ import annotations

import logging
from typing import Optional

from config.settings import Settings, get_settings
from models.image_result import ImageApplyResult, ImageFill, PlaceholderFill
from ports.canvas import CanvasPort
from ports.images import BackgroundRemoverPort, ImageFetcherPort
from services.background_removal import get_background_remover
from services.image_cache import ImageCache
from services.image_fetcher import HttpImageFetcher


logger = logging.getLogger(__name__)


def initials_for(label: Optional[str]) -> str:
    """'Ada Lovelace' -> 'AL', 'Prince' -> 'PR', '' -> '?'."""
    words = (label or "").split()
    if not words:
        return "?"
    if len(words) == 1:
        return words[0][:2].upper()
    return "".join(w[0] for w in words).upper()


class ImageResolver:
    """Turns an image URL into something applyable to a slot.

    Never raises: every failure ends in an initials placeholder.
    """

    def __init__(
        self,
        canvas: CanvasPort,
        cache: Optional[ImageCache] = None,
        fetcher: Optional[ImageFetcherPort] = None,
        remover: Optional[BackgroundRemoverPort] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.canvas = canvas
        self.cache = cache if cache is not None else ImageCache(self.settings.image_cache_capacity)
        self.fetcher = fetcher or HttpImageFetcher(settings=self.settings)
        self._remover = remover

    @property
    def remover(self) -> BackgroundRemoverPort:
        if self._remover is None:
            self._remover = get_background_remover(self.settings)
        return self._remover

    def placeholder(self, label: Optional[str], reason: str) -> PlaceholderFill:
        return PlaceholderFill(initials=initials_for(label), reason=reason)

    def resolve(self, url: Optional[str], fallback_label: Optional[str], processing_mode: str = "original") -> ImageApplyResult:
        url = (url or "").strip()
        if not url:
            return self.placeholder(fallback_label, "no image url")
        try:
            fill, reused = self.cache.get_or_load(url, lambda: self._materialize(url, processing_mode))
        except Exception as e:
            logger.warning(
                f"Image unavailable for {fallback_label!r}, using placeholder: {e}",
                extra={"step": "image", "status": "placeholder", "record": fallback_label, "error": type(e).__name__},
            )
            return self.placeholder(fallback_label, f"fetch failed: {e}")
        return fill.model_copy(update={"from_cache": True}) if reused else fill

    def _materialize(self, url: str, processing_mode: str) -> ImageFill:
        data = self.fetcher.fetch(url)
        if processing_mode == "remove-background":
            try:
                processed = self.remover.remove_background(data)
                return ImageFill(image_hash=self.canvas.create_image(processed), source_url=url, background_removed=True)
            except Exception as e:
                logger.info(f"Background removal skipped for {url}: {e}", extra={"step": "image", "status": "fallback"})
        return ImageFill(image_hash=self.canvas.create_image(data), source_url=url)
