from __future__ import annotations

from typing import Any, Dict, List, Optional

from errors import FailureKind, StrategyError
from ports.sheets import SheetRef
from sources.base import HttpStrategy
from sources.registry import register


def _csv_cell(value: Any) -> str:
    text = "" if value is None else str(value)
    text = " ".join(text.splitlines())
    if "," in text or '"' in text:
        return '"' + text.replace('"', '""') + '"'
    return text


def rows_to_csv(rows: List[Dict[str, Any]], headers: Optional[List[str]] = None) -> str:
    """Serialize connector rows (list of objects) to the parser's CSV shape."""
    if not headers:
        headers = []
        for row in rows:
            for key in row.keys():
                if key not in headers:
                    headers.append(key)
    lines = [",".join(_csv_cell(h) for h in headers)]
    for row in rows:
        lines.append(",".join(_csv_cell(row.get(h)) for h in headers))
    return "\n".join(lines)


def _classify_proxy_error(text: str) -> FailureKind:
    low = text.lower()
    if "not found" in low or "does not exist" in low:
        return FailureKind.NOT_FOUND
    if "permission" in low or "access" in low or "denied" in low:
        return FailureKind.ACCESS_DENIED
    return FailureKind.UNKNOWN


class AppsScriptProxyStrategy(HttpStrategy):
    """Trusted server-side proxy returning ``{success, data, headers}`` JSON."""

    name = "apps_script_proxy"

    def fetch(self, ref: SheetRef) -> str:
        proxy_url = self.settings.sheets_proxy_url
        if not proxy_url:
            raise StrategyError("No SHEETS_PROXY_URL configured", kind=FailureKind.UNKNOWN)
        resp = self._get(proxy_url, params={"sheetId": ref.sheet_id})
        try:
            payload = resp.json()
        except ValueError as e:
            raise StrategyError(f"Proxy returned invalid JSON: {e}", kind=FailureKind.BLOCKED) from e
        if not isinstance(payload, dict):
            raise StrategyError("Proxy returned an unexpected payload", kind=FailureKind.UNKNOWN)
        if payload.get("error"):
            detail = str(payload.get("error"))
            raise StrategyError(f"Proxy error: {detail}", kind=_classify_proxy_error(detail))
        rows = payload.get("data") or []
        if not rows:
            return ""
        headers = [str(h) for h in payload.get("headers") or []] or None
        return rows_to_csv(rows, headers)


def _register():
    register(AppsScriptProxyStrategy.name, AppsScriptProxyStrategy)


_register()
