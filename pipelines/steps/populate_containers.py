from __future__ import annotations

from pipelines.runner import RunContext
from services.population_engine import PopulationEngine


class PopulateContainers:
    """Drive the population engine and forward its progress events."""

    def __init__(self, engine: PopulationEngine) -> None:
        self.engine = engine

    def run(self, ctx: RunContext) -> RunContext:
        ctx.status("Starting profile processing...")
        for event in self.engine.populate(ctx.containers, ctx.records, ctx.processing, cancel=ctx.cancel):
            ctx.emit(event)
            if event.type == "complete":
                ctx.meta["processed"] = event.total
                ctx.meta["elapsed_ms"] = event.time
        return ctx
