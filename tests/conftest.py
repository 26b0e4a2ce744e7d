from __future__ import annotations

import io
import os
import sys
from pathlib import Path

import pytest


def pytest_configure():
    # Ensure project root is on sys.path for absolute imports like 'services.tabular_parser'
    root = Path(__file__).resolve().parents[1]
    if str(root) not in sys.path:
        sys.path.insert(0, str(root))
    # Set test environment knobs
    os.environ.setdefault("RUN_ENV", "test")


class FakeResponse:
    def __init__(self, status_code=200, text="", content=None, json_data=None, url=""):
        self.status_code = status_code
        self.text = text
        self.content = content if content is not None else text.encode("utf-8")
        self._json = json_data
        self.url = url

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        if self._json is None:
            raise ValueError("No JSON object could be decoded")
        return self._json


class FakeSession:
    """Records calls; answers from a list of responses/exceptions or a callable."""

    def __init__(self, responses=None, handler=None):
        self.responses = list(responses or [])
        self.handler = handler
        self.calls = []

    def _next(self, method, url, kwargs):
        self.calls.append((method, url, kwargs))
        if self.handler is not None:
            result = self.handler(method, url, kwargs)
        else:
            result = self.responses.pop(0)
        if isinstance(result, BaseException):
            raise result
        return result

    def get(self, url, **kwargs):
        return self._next("GET", url, kwargs)

    def post(self, url, **kwargs):
        return self._next("POST", url, kwargs)


def make_png(color=(200, 30, 30), size=(4, 4)) -> bytes:
    from PIL import Image

    buf = io.BytesIO()
    Image.new("RGB", size, color).save(buf, format="PNG")
    return buf.getvalue()


class FakeImageFetcher:
    def __init__(self, data=None, fail_for=()):
        self.data = data if data is not None else make_png()
        self.fail_for = set(fail_for)
        self.calls = []

    def fetch(self, url):
        from errors import FetchError

        self.calls.append(url)
        if url in self.fail_for:
            raise FetchError("Failed to fetch image: HTTP 404")
        return self.data


@pytest.fixture
def settings():
    from dataclasses import replace
    from config.settings import get_settings

    return replace(get_settings(), batch_delay_ms=0, sheets_proxy_url=None, bg_removal_provider="none")


@pytest.fixture
def canvas():
    from canvas.memory import MemoryCanvas

    return MemoryCanvas()


@pytest.fixture
def png_bytes():
    return make_png()


@pytest.fixture
def image_fetcher():
    return FakeImageFetcher()
