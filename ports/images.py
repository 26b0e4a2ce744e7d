from __future__ import annotations

from typing import Protocol


class ImageFetcherPort(Protocol):
    def fetch(self, url: str) -> bytes:
        """Return image bytes; raise errors.FetchError on failure."""
        ...


class BackgroundRemoverPort(Protocol):
    name: str

    def remove_background(self, data: bytes) -> bytes:
        """Raise errors.BackgroundRemovalError on failure."""
        ...
