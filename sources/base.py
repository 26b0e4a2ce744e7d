from __future__ import annotations

from typing import Any, Dict, Optional

import requests
from bs4 import BeautifulSoup

from config.settings import Settings, get_settings
from errors import FailureKind, StrategyError
from ports.sheets import SheetRef


def classify_status(status_code: int) -> FailureKind:
    if status_code in (401, 403):
        return FailureKind.ACCESS_DENIED
    if status_code in (404, 410):
        return FailureKind.NOT_FOUND
    if status_code in (429, 451):
        return FailureKind.BLOCKED
    return FailureKind.UNKNOWN


def classify_exception(exc: Optional[BaseException]) -> FailureKind:
    if isinstance(exc, StrategyError):
        return exc.kind
    if isinstance(exc, (requests.exceptions.ConnectionError, requests.exceptions.Timeout)):
        return FailureKind.NETWORK
    if isinstance(exc, requests.exceptions.HTTPError) and exc.response is not None:
        return classify_status(exc.response.status_code)
    return FailureKind.UNKNOWN


def _looks_like_html(text: str) -> bool:
    head = text.lstrip()[:1000].lower()
    return head.startswith("<!doctype html") or head.startswith("<html") or "<head" in head


def ensure_tabular(text: Optional[str], final_url: str = "") -> str:
    """Reject empty bodies and HTML pages served where CSV was expected."""
    if not text or not text.strip():
        raise StrategyError("Empty response body", kind=FailureKind.UNKNOWN)
    if _looks_like_html(text):
        soup = BeautifulSoup(text, "html.parser")
        title = " ".join((soup.title.get_text(" ") if soup.title else "").split())
        if "accounts.google.com" in (final_url or "") or "sign in" in title.lower():
            raise StrategyError(f"Sign-in page returned ({title or 'no title'})", kind=FailureKind.ACCESS_DENIED)
        raise StrategyError(f"HTML page returned instead of CSV ({title or 'no title'})", kind=FailureKind.BLOCKED)
    return text


class HttpStrategy:
    """Base for strategies that issue one GET and return tabular text."""

    name = "http"

    def __init__(self, session: Optional[requests.Session] = None, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.session = session or requests.Session()

    def _get(self, url: str, params: Optional[Dict[str, Any]] = None) -> requests.Response:
        resp = self.session.get(
            url,
            params=params,
            timeout=self.settings.http_timeout_seconds,
            headers={"User-Agent": self.settings.user_agent},
        )
        if not resp.ok:
            raise StrategyError(
                f"HTTP {resp.status_code} from {self.name}",
                kind=classify_status(resp.status_code),
                status_code=resp.status_code,
            )
        return resp

    def fetch(self, ref: SheetRef) -> str:
        raise NotImplementedError
