from __future__ import annotations

from typing import Dict, Optional

import requests

from config.settings import Settings, get_settings
from errors import BackgroundRemovalError
from ports.images import BackgroundRemoverPort


class RemoveBgClient:
    """remove.bg style API: multipart upload in, PNG with transparent background out."""

    name = "removebg"

    def __init__(self, session: Optional[requests.Session] = None, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.session = session or requests.Session()

    def remove_background(self, data: bytes) -> bytes:
        api_key = self.settings.remove_bg_api_key
        if not api_key:
            raise BackgroundRemovalError("REMOVE_BG_API_KEY not configured")
        try:
            resp = self.session.post(
                self.settings.remove_bg_api_url,
                files={"image_file": ("image", data)},
                data={"size": "auto"},
                headers={"X-Api-Key": api_key},
                timeout=self.settings.http_timeout_seconds,
            )
        except requests.exceptions.RequestException as e:
            raise BackgroundRemovalError(f"Background removal request failed: {e}") from e
        if not resp.ok:
            raise BackgroundRemovalError(f"Background removal failed: HTTP {resp.status_code}")
        if not resp.content:
            raise BackgroundRemovalError("Background removal returned no data")
        return resp.content


class DisabledBackgroundRemover:
    name = "none"

    def __init__(self, session: Optional[requests.Session] = None, settings: Optional[Settings] = None):
        pass

    def remove_background(self, data: bytes) -> bytes:
        raise BackgroundRemovalError("Background removal disabled")


PROVIDERS: Dict[str, type] = {
    RemoveBgClient.name: RemoveBgClient,
    DisabledBackgroundRemover.name: DisabledBackgroundRemover,
}


def get_background_remover(settings: Optional[Settings] = None, session: Optional[requests.Session] = None) -> BackgroundRemoverPort:
    settings = settings or get_settings()
    provider = PROVIDERS.get(settings.bg_removal_provider)
    if provider is None:
        raise ValueError(f"Unknown BG_REMOVAL_PROVIDER: {settings.bg_removal_provider}")
    return provider(session=session, settings=settings)
