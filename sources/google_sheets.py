from __future__ import annotations

import time

from ports.sheets import SheetRef
from sources.base import HttpStrategy, ensure_tabular
from sources.registry import register


SHEETS_BASE_URL = "https://docs.google.com/spreadsheets/d"


class CsvExportStrategy(HttpStrategy):
    """Plain CSV export of the first sheet."""

    name = "csv_export"

    def fetch(self, ref: SheetRef) -> str:
        resp = self._get(f"{SHEETS_BASE_URL}/{ref.sheet_id}/export", params={"format": "csv"})
        return ensure_tabular(resp.text, getattr(resp, "url", ""))


class CsvExportGidStrategy(HttpStrategy):
    """CSV export pinned to a sheet tab, with a cache-busting timestamp."""

    name = "csv_export_gid"

    def fetch(self, ref: SheetRef) -> str:
        params = {"format": "csv", "gid": ref.gid or "0", "t": int(time.time() * 1000)}
        resp = self._get(f"{SHEETS_BASE_URL}/{ref.sheet_id}/export", params=params)
        return ensure_tabular(resp.text, getattr(resp, "url", ""))


class GvizCsvStrategy(HttpStrategy):
    """Visualization query endpoint; works for some sheets the export URL refuses."""

    name = "gviz_csv"

    def fetch(self, ref: SheetRef) -> str:
        params = {"tqx": "out:csv", "gid": ref.gid or "0"}
        resp = self._get(f"{SHEETS_BASE_URL}/{ref.sheet_id}/gviz/tq", params=params)
        return ensure_tabular(resp.text, getattr(resp, "url", ""))


def _register():
    register(CsvExportStrategy.name, CsvExportStrategy)
    register(CsvExportGidStrategy.name, CsvExportGidStrategy)
    register(GvizCsvStrategy.name, GvizCsvStrategy)


_register()
