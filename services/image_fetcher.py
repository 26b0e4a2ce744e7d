from __future__ import annotations

import base64
import binascii
from typing import Optional
from urllib.parse import unquote_to_bytes

import requests

from config.settings import Settings, get_settings
from errors import FetchError


def decode_data_url(url: str) -> bytes:
    """Decode an inline ``data:[mime][;base64],payload`` URL."""
    header, sep, payload = url.partition(",")
    if not sep:
        raise FetchError("Malformed data URL")
    if ";base64" in header.lower():
        try:
            data = base64.b64decode(payload)
        except (binascii.Error, ValueError) as e:
            raise FetchError(f"Invalid base64 image data: {e}") from e
    else:
        data = unquote_to_bytes(payload)
    if not data:
        raise FetchError("Skipping image - empty image data")
    return data


class HttpImageFetcher:
    def __init__(self, session: Optional[requests.Session] = None, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.session = session or requests.Session()

    def fetch(self, url: str) -> bytes:
        if url.lower().startswith("data:"):
            return decode_data_url(url)
        try:
            resp = self.session.get(
                url,
                timeout=self.settings.http_timeout_seconds,
                headers={"User-Agent": self.settings.user_agent},
            )
        except requests.exceptions.RequestException as e:
            raise FetchError(f"Failed to fetch image: {e}") from e
        if not resp.ok:
            raise FetchError(f"Failed to fetch image: HTTP {resp.status_code}")
        if not resp.content:
            raise FetchError("Skipping image - empty image data")
        return resp.content
