from __future__ import annotations

from pipelines.runner import RunContext
from services.tabular_parser import parse_profiles


class ParseRecords:
    """Parse pasted or uploaded CSV text into profile records."""

    def run(self, ctx: RunContext) -> RunContext:
        ctx.status("Parsing CSV data...")
        ctx.records = parse_profiles(ctx.csv_data or "")
        ctx.meta["source"] = "csv"
        return ctx
