from __future__ import annotations

import logging

from utils.logging_setup import SafeExtraFormatter


def test_formatter_fills_missing_extras():
    formatter = SafeExtraFormatter(fmt="%(message)s step=%(step)s record=%(record)s run_id=%(run_id)s")
    record = logging.LogRecord("x", logging.INFO, __file__, 1, "hello", None, None)
    record.step = "populate"
    assert formatter.format(record) == "hello step=populate record=- run_id=-"


def test_init_logging_writes_to_stderr(monkeypatch):
    import sys

    import utils.logging_setup as logging_setup

    root = logging.getLogger()
    monkeypatch.setattr(logging_setup, "_INITIALIZED", False)
    monkeypatch.setattr(root, "handlers", [])
    monkeypatch.setattr(root, "level", root.level)
    logging_setup.init_logging("DEBUG")
    logging_setup.init_logging("ERROR")  # idempotent
    assert len(root.handlers) == 1
    handler = root.handlers[0]
    assert handler.stream is sys.stderr
    assert isinstance(handler.formatter, SafeExtraFormatter)
    assert root.level == logging.DEBUG
