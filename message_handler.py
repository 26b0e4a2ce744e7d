from __future__ import annotations

import logging
import threading
import time
import uuid
from typing import Any, Callable, Dict, Optional

import requests
from pydantic import ValidationError

from config.settings import Settings, get_settings
from errors import InvalidUrlError, PopulatorError
from models import (
    ErrorEvent,
    ProcessDataCommand,
    ProcessSheetsCommand,
    TestConnectionCommand,
    TestResultEvent,
    command_adapter,
)
from models.events import Event
from pipelines.runner import Pipeline, RunContext
from pipelines.steps import AllocateContainers, FetchSheetRecords, ParseRecords, PopulateContainers
from ports.canvas import CanvasPort
from ports.images import BackgroundRemoverPort, ImageFetcherPort
from services.container_allocator import ContainerAllocator
from services.image_cache import ImageCache
from services.image_resolver import ImageResolver
from services.population_engine import PopulationEngine
from sources.remote_fetcher import RemoteSourceFetcher, failure_message


logger = logging.getLogger(__name__)


def _format_validation_error(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()))
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return "Invalid message: " + "; ".join(parts)


class MessageHandler:
    """Entry point for UI commands; every outcome is reported through ``emit``."""

    def __init__(
        self,
        canvas: CanvasPort,
        emit: Callable[[Event], None],
        settings: Optional[Settings] = None,
        fetcher: Optional[RemoteSourceFetcher] = None,
        image_fetcher: Optional[ImageFetcherPort] = None,
        remover: Optional[BackgroundRemoverPort] = None,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.canvas = canvas
        self.emit = emit
        self.settings = settings or get_settings()
        self.session = session
        self.fetcher = fetcher or RemoteSourceFetcher(session=session, settings=self.settings)
        self.image_fetcher = image_fetcher
        self.remover = remover
        self.sleep = sleep

    def handle(self, message: Dict[str, Any], cancel: Optional[threading.Event] = None) -> Optional[RunContext]:
        run_id = uuid.uuid4().hex
        try:
            command = command_adapter.validate_python(message)
        except ValidationError as e:
            logger.warning(f"Rejected message: {e.error_count()} errors", extra={"step": "handle", "run_id": run_id})
            self.emit(ErrorEvent(message=_format_validation_error(e)))
            return None

        if isinstance(command, TestConnectionCommand):
            self._test_connection(command, run_id)
            return None

        start = time.monotonic()
        logger.info(f"Starting {command.type} run", extra={"step": "handle", "run_id": run_id})
        try:
            ctx = self._build_pipeline(command).run(self._context(command, cancel, run_id))
        except PopulatorError as e:
            logger.warning(
                f"Run aborted: {e.message}",
                extra={"step": "handle", "status": "error", "error": type(e).__name__, "run_id": run_id},
            )
            self.emit(ErrorEvent(message=e.message))
            return None
        except Exception as e:
            logger.exception(f"Unexpected failure during {command.type}", extra={"step": "handle", "run_id": run_id})
            self.emit(ErrorEvent(message=f"Error: {e}"))
            return None

        duration_ms = int((time.monotonic() - start) * 1000)
        logger.info(
            f"Finished {command.type} run: {ctx.meta.get('processed', 0)} profiles",
            extra={"step": "handle", "status": "ok", "duration_ms": duration_ms, "run_id": run_id},
        )
        return ctx

    def _context(self, command, cancel: Optional[threading.Event], run_id: str) -> RunContext:
        ctx = RunContext(processing=command.settings, emit=self.emit, cancel=cancel)
        if isinstance(command, ProcessDataCommand):
            ctx.csv_data = command.csv_data
        elif isinstance(command, ProcessSheetsCommand):
            ctx.sheets_url = command.sheets_url
        ctx.meta["run_id"] = run_id
        return ctx

    def _build_pipeline(self, command) -> Pipeline:
        # A fresh cache per run keeps image hashes from leaking between runs
        cache: ImageCache = ImageCache(self.settings.image_cache_capacity)
        resolver = ImageResolver(
            self.canvas,
            cache=cache,
            fetcher=self.image_fetcher,
            remover=self.remover,
            settings=self.settings,
        )
        engine = PopulationEngine(self.canvas, resolver, settings=self.settings, sleep=self.sleep)
        source = ParseRecords() if isinstance(command, ProcessDataCommand) else FetchSheetRecords(self.fetcher)
        return Pipeline([
            source,
            AllocateContainers(ContainerAllocator(self.canvas, self.settings)),
            PopulateContainers(engine),
        ])

    def _test_connection(self, command: TestConnectionCommand, run_id: str) -> None:
        try:
            diagnostic = self.fetcher.test_connection(command.sheets_url)
        except InvalidUrlError as e:
            self.emit(TestResultEvent(success=False, message=e.message, details=None))
            return
        except Exception as e:
            logger.exception("Connection test failed unexpectedly", extra={"step": "test-connection", "run_id": run_id})
            self.emit(TestResultEvent(success=False, message=f"Connection test failed: {e}", details=None))
            return

        details = diagnostic.model_dump()
        if diagnostic.status == "ok":
            message = f"Connection successful via {diagnostic.strategy} ({diagnostic.line_count} lines)"
            self.emit(TestResultEvent(success=True, message=message, details=details))
        else:
            self.emit(TestResultEvent(success=False, message=failure_message(diagnostic.status), details=details))
        logger.info(
            f"Connection test for {diagnostic.sheet_id}: {diagnostic.status}",
            extra={"step": "test-connection", "status": diagnostic.status, "run_id": run_id},
        )
