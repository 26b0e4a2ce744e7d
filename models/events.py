from __future__ import annotations

from typing import Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class _Event(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    def to_message(self) -> Dict[str, Any]:
        """Wire shape: camelCase keys, as the UI expects."""
        return self.model_dump(by_alias=True)


class StatusEvent(_Event):
    type: Literal["status"] = "status"
    message: str


class ProgressEvent(_Event):
    type: Literal["progress"] = "progress"
    current: int
    total: int
    avg_time: int = Field(alias="avgTime")  # ms per record
    remaining: int  # seconds


class CompleteEvent(_Event):
    type: Literal["complete"] = "complete"
    total: int
    time: int  # ms


class ErrorEvent(_Event):
    type: Literal["error"] = "error"
    message: str


class TestResultEvent(_Event):
    __test__ = False  # not a pytest class

    type: Literal["test-result"] = "test-result"
    success: bool
    message: str
    details: Optional[Dict[str, Any]] = None


Event = Union[StatusEvent, ProgressEvent, CompleteEvent, ErrorEvent, TestResultEvent]
