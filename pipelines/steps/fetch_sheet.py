from __future__ import annotations

from typing import Optional

from pipelines.runner import RunContext
from sources.remote_fetcher import RemoteSourceFetcher


class FetchSheetRecords:
    def __init__(self, fetcher: Optional[RemoteSourceFetcher] = None) -> None:
        self.fetcher = fetcher or RemoteSourceFetcher()

    def run(self, ctx: RunContext) -> RunContext:
        ctx.status("Fetching Google Sheets data...")
        ctx.records = self.fetcher.fetch_remote(ctx.sheets_url or "")
        ctx.meta["source"] = "google-sheets"
        return ctx
