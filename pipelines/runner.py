from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Protocol

from models import ProcessingSettings, ProfileRecord
from models.events import Event, StatusEvent
from utils.logging_setup import init_logging


def _drop(event: Event) -> None:
    return None


@dataclass
class RunContext:
    csv_data: Optional[str] = None
    sheets_url: Optional[str] = None
    processing: ProcessingSettings = field(default_factory=ProcessingSettings)
    records: List[ProfileRecord] = field(default_factory=list)
    containers: list = field(default_factory=list)
    emit: Callable[[Event], None] = _drop
    cancel: Optional[threading.Event] = None
    meta: Dict[str, Any] = field(default_factory=dict)

    def status(self, message: str) -> None:
        self.emit(StatusEvent(message=message))


class Step(Protocol):
    def run(self, ctx: RunContext) -> RunContext:
        ...


class Pipeline:
    def __init__(self, steps: List[Step]):
        self.steps = steps

    def run(self, ctx: RunContext) -> RunContext:
        # Make logging idempotent for any direct runner use
        init_logging()
        for step in self.steps:
            ctx = step.run(ctx)
        return ctx
