"""
Exception taxonomy for the profile populator.

Setup failures (parsing, remote fetch, allocation) abort a run and surface as a
single ``error`` event. Per-record failures (fonts, images) are caught close to
where they happen and degrade to a fallback.
"""
from __future__ import annotations

from enum import Enum
from typing import List, Optional


class PopulatorError(Exception):
    """Base class; ``message`` is safe to show to the user."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


# Parsing

class MalformedInputError(PopulatorError):
    pass


class MissingColumnError(PopulatorError):
    def __init__(self, column: str, message: Optional[str] = None):
        super().__init__(
            message
            or f'Could not find {column.title()} column. Please ensure your CSV has a "{column.title()}" column.'
        )
        self.column = column


class EmptyResultError(PopulatorError):
    pass


# Remote fetch

class FailureKind(str, Enum):
    ACCESS_DENIED = "access-denied"
    NOT_FOUND = "not-found"
    NETWORK = "network"
    BLOCKED = "blocked"
    UNKNOWN = "unknown"


class InvalidUrlError(PopulatorError):
    pass


class StrategyError(PopulatorError):
    """One retrieval strategy failed; ``kind`` classifies the failure."""

    def __init__(self, message: str, kind: FailureKind = FailureKind.UNKNOWN, status_code: Optional[int] = None):
        super().__init__(message)
        self.kind = kind
        self.status_code = status_code


class AllStrategiesFailedError(PopulatorError):
    def __init__(self, message: str, kind: FailureKind, attempts: Optional[List[dict]] = None):
        super().__init__(message)
        self.kind = kind
        self.attempts = attempts or []


# Allocation

class NoTemplateError(PopulatorError):
    pass


# Per-record (always handled internally)

class FetchError(PopulatorError):
    pass


class FontLoadError(PopulatorError):
    pass


class BackgroundRemovalError(PopulatorError):
    pass
