from __future__ import annotations

import base64

import pytest
import requests

from conftest import FakeImageFetcher, FakeResponse, FakeSession, make_png
from errors import BackgroundRemovalError, FetchError
from models import ImageFill, PlaceholderFill
from services.background_removal import DisabledBackgroundRemover, RemoveBgClient, get_background_remover
from services.image_cache import ImageCache
from services.image_fetcher import HttpImageFetcher, decode_data_url
from services.image_resolver import ImageResolver, initials_for


class FakeRemover:
    name = "fake"

    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.calls = 0

    def remove_background(self, data):
        self.calls += 1
        if self.error:
            raise self.error
        return self.result


@pytest.mark.parametrize("label,expected", [
    ("Ada Lovelace", "AL"),
    ("Prince", "PR"),
    ("", "?"),
    (None, "?"),
    ("  mary   ann  evans ", "MAE"),
])
def test_initials(label, expected):
    assert initials_for(label) == expected


def test_blank_url_gives_placeholder(canvas, settings, image_fetcher):
    resolver = ImageResolver(canvas, fetcher=image_fetcher, settings=settings)
    result = resolver.resolve("", "Ada Lovelace", "original")
    assert isinstance(result, PlaceholderFill)
    assert result.initials == "AL"
    assert image_fetcher.calls == []


def test_same_url_fetched_once(canvas, settings, image_fetcher):
    cache = ImageCache(10)
    resolver = ImageResolver(canvas, cache=cache, fetcher=image_fetcher, settings=settings)
    first = resolver.resolve("https://img/a.png", "Ada", "original")
    second = resolver.resolve("https://img/a.png", "Bob", "original")
    assert isinstance(first, ImageFill) and isinstance(second, ImageFill)
    assert first.image_hash == second.image_hash
    assert first.image_hash in canvas.images
    assert not first.from_cache and second.from_cache
    assert image_fetcher.calls == ["https://img/a.png"]


def test_fetch_failure_degrades_to_placeholder(canvas, settings):
    fetcher = FakeImageFetcher(fail_for={"https://img/missing.png"})
    resolver = ImageResolver(canvas, fetcher=fetcher, settings=settings)
    result = resolver.resolve("https://img/missing.png", "Grace Hopper", "original")
    assert isinstance(result, PlaceholderFill)
    assert result.initials == "GH"
    assert "fetch failed" in result.reason


def test_undecodable_bytes_degrade_to_placeholder(canvas, settings):
    resolver = ImageResolver(canvas, fetcher=FakeImageFetcher(data=b"not an image"), settings=settings)
    assert isinstance(resolver.resolve("https://img/x", "Ada", "original"), PlaceholderFill)


def test_background_removal_used_when_requested(canvas, settings, image_fetcher):
    processed = make_png(color=(0, 0, 0))
    remover = FakeRemover(result=processed)
    resolver = ImageResolver(canvas, fetcher=image_fetcher, remover=remover, settings=settings)
    result = resolver.resolve("https://img/a.png", "Ada", "remove-background")
    assert isinstance(result, ImageFill) and result.background_removed
    assert canvas.images[result.image_hash] == processed


def test_background_removal_failure_falls_back_to_original(canvas, settings, image_fetcher):
    remover = FakeRemover(error=BackgroundRemovalError("quota"))
    resolver = ImageResolver(canvas, fetcher=image_fetcher, remover=remover, settings=settings)
    result = resolver.resolve("https://img/a.png", "Ada", "remove-background")
    assert isinstance(result, ImageFill) and not result.background_removed
    assert canvas.images[result.image_hash] == image_fetcher.data
    assert remover.calls == 1


def test_original_mode_never_calls_remover(canvas, settings, image_fetcher):
    remover = FakeRemover(result=b"")
    ImageResolver(canvas, fetcher=image_fetcher, remover=remover, settings=settings).resolve("https://img/a", "A", "original")
    assert remover.calls == 0


def test_data_url_decoding(png_bytes):
    url = "data:image/png;base64," + base64.b64encode(png_bytes).decode("ascii")
    assert decode_data_url(url) == png_bytes
    assert decode_data_url("data:text/plain,hello%20there") == b"hello there"
    with pytest.raises(FetchError):
        decode_data_url("data:image/png;base64")
    with pytest.raises(FetchError):
        decode_data_url("data:image/png;base64,")


def test_http_fetcher(settings, png_bytes):
    session = FakeSession([
        FakeResponse(content=png_bytes),
        FakeResponse(status_code=404),
        requests.exceptions.ConnectionError("offline"),
    ])
    fetcher = HttpImageFetcher(session=session, settings=settings)
    assert fetcher.fetch("https://img/a.png") == png_bytes
    assert session.calls[0][2]["headers"]["User-Agent"] == settings.user_agent
    with pytest.raises(FetchError):
        fetcher.fetch("https://img/b.png")
    with pytest.raises(FetchError):
        fetcher.fetch("https://img/c.png")


def test_removebg_client(settings, png_bytes):
    from dataclasses import replace

    keyed = replace(settings, remove_bg_api_key="secret")
    session = FakeSession([FakeResponse(content=b"cut-out"), FakeResponse(status_code=402)])
    client = RemoveBgClient(session=session, settings=keyed)
    assert client.remove_background(png_bytes) == b"cut-out"
    method, url, kwargs = session.calls[0]
    assert method == "POST" and url == keyed.remove_bg_api_url
    assert kwargs["headers"]["X-Api-Key"] == "secret"
    with pytest.raises(BackgroundRemovalError):
        client.remove_background(png_bytes)
    with pytest.raises(BackgroundRemovalError):
        RemoveBgClient(session=FakeSession(), settings=settings).remove_background(png_bytes)


def test_provider_lookup(settings):
    from dataclasses import replace

    assert isinstance(get_background_remover(settings), DisabledBackgroundRemover)
    assert isinstance(get_background_remover(replace(settings, bg_removal_provider="removebg")), RemoveBgClient)
    with pytest.raises(ValueError):
        get_background_remover(replace(settings, bg_removal_provider="magic"))


def test_http_fetcher_accepts_any_success_status(settings, png_bytes):
    session = FakeSession([FakeResponse(status_code=203, content=png_bytes), FakeResponse(status_code=500)])
    fetcher = HttpImageFetcher(session=session, settings=settings)
    assert fetcher.fetch("https://cdn/a.png") == png_bytes
    with pytest.raises(FetchError):
        fetcher.fetch("https://cdn/b.png")
