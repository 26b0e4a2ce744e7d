from __future__ import annotations

import logging
import re
from typing import Dict, List, Optional, Sequence, Tuple

import requests

from config.settings import Settings, get_settings
from errors import AllStrategiesFailedError, FailureKind, InvalidUrlError
from models import ConnectionDiagnostic, ProfileRecord, StrategyAttempt
from ports.sheets import SheetRef, SheetStrategyPort
from services.tabular_parser import detect_columns, parse_profiles
from sources import apps_script_proxy, google_sheets  # noqa: F401 ensure registration
from sources.base import classify_exception
from sources.ladder import LadderExhausted, LadderResult, first_success
from sources.registry import build_ladder


logger = logging.getLogger(__name__)

SHEET_ID_RE = re.compile(r"/spreadsheets/d/([a-zA-Z0-9-_]+)")
GID_RE = re.compile(r"[#?&]gid=([0-9]+)")

# Priority order of the retrieval ladder.
DEFAULT_STRATEGIES: List[str] = [
    "csv_export",
    "csv_export_gid",
    "gviz_csv",
    "apps_script_proxy",
]

FAILURE_MESSAGES: Dict[FailureKind, str] = {
    FailureKind.ACCESS_DENIED: (
        "Access denied. Share the sheet as \"Anyone with the link can view\" and try again."
    ),
    FailureKind.NOT_FOUND: "Spreadsheet not found. Check that the sharing URL is correct.",
    FailureKind.NETWORK: "Network error while contacting Google Sheets. Check your connection and try again.",
    FailureKind.BLOCKED: (
        "The request was blocked. Publish the sheet to the web or configure SHEETS_PROXY_URL."
    ),
    FailureKind.UNKNOWN: "Failed to fetch any data from Google Sheets.",
}


def extract_sheet_ref(share_url: str) -> SheetRef:
    match = SHEET_ID_RE.search(share_url or "")
    if not match:
        raise InvalidUrlError("Invalid Google Sheets URL. Please provide a valid sharing URL.")
    gid_match = GID_RE.search(share_url)
    return SheetRef(sheet_id=match.group(1), gid=gid_match.group(1) if gid_match else "0", share_url=share_url)


def terminal_kind(attempts) -> FailureKind:
    """Kind of the last attempt that says something about the sheet.

    Unclassified failures (an unconfigured proxy, an empty body) only win when
    no rung produced anything more specific.
    """
    for attempt in reversed(attempts):
        kind = classify_exception(attempt.error)
        if kind != FailureKind.UNKNOWN:
            return kind
    return FailureKind.UNKNOWN


def _attempts_to_models(result_attempts) -> List[StrategyAttempt]:
    out: List[StrategyAttempt] = []
    for a in result_attempts:
        out.append(StrategyAttempt(
            strategy=a.name,
            ok=a.ok,
            kind=None if a.ok else classify_exception(a.error).value,
            error=str(a.error) if a.error else (None if a.ok else "empty content"),
            duration_ms=a.duration_ms,
        ))
    return out


class RemoteSourceFetcher:
    """Resolves a sheet share link to profile records through a strategy ladder."""

    def __init__(
        self,
        strategies: Optional[Sequence[SheetStrategyPort]] = None,
        session: Optional[requests.Session] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self.settings = settings or get_settings()
        if strategies is None:
            strategies = build_ladder(DEFAULT_STRATEGIES, session=session, settings=self.settings)
        self.strategies = list(strategies)

    def _run_ladder(self, ref: SheetRef) -> LadderResult[str]:
        steps: List[Tuple[str, object]] = [(s.name, s.fetch) for s in self.strategies]
        return first_success(steps, ref, accept=lambda text: bool(text and text.strip()))

    def fetch_text(self, share_url: str) -> str:
        ref = extract_sheet_ref(share_url)
        logger.info(f"Fetching sheet {ref.sheet_id} (gid={ref.gid})", extra={"step": "fetch"})
        try:
            result = self._run_ladder(ref)
        except LadderExhausted as e:
            kind = terminal_kind(e.attempts)
            attempts = [a.model_dump() for a in _attempts_to_models(e.attempts)]
            logger.warning(
                f"All {len(e.attempts)} strategies failed for sheet {ref.sheet_id}",
                extra={"step": "fetch", "status": kind.value, "error": str(e.last_error)},
            )
            raise AllStrategiesFailedError(
                f"Failed to fetch Google Sheets: {FAILURE_MESSAGES[kind]}", kind=kind, attempts=attempts
            ) from e.last_error
        return result.value

    def fetch_remote(self, share_url: str) -> List[ProfileRecord]:
        return parse_profiles(self.fetch_text(share_url))

    def test_connection(self, share_url: str) -> ConnectionDiagnostic:
        """Same ladder as ``fetch_remote`` but returns a diagnostic instead of records."""
        ref = extract_sheet_ref(share_url)
        try:
            result = self._run_ladder(ref)
        except LadderExhausted as e:
            kind = terminal_kind(e.attempts)
            return ConnectionDiagnostic(
                sheet_id=ref.sheet_id,
                status=kind.value,
                attempts=_attempts_to_models(e.attempts),
            )
        text = result.value
        return ConnectionDiagnostic(
            sheet_id=ref.sheet_id,
            strategy=result.name,
            status="ok",
            sample=text[: self.settings.connection_sample_chars],
            line_count=len([line for line in text.splitlines() if line.strip()]),
            columns=detect_columns(text),
            attempts=_attempts_to_models(result.attempts),
        )


def failure_message(kind: str) -> str:
    try:
        return FAILURE_MESSAGES[FailureKind(kind)]
    except ValueError:
        return FAILURE_MESSAGES[FailureKind.UNKNOWN]
