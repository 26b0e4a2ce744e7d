from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class SheetRef:
    sheet_id: str
    gid: str = "0"
    share_url: str = ""


class SheetStrategyPort(Protocol):
    """One way of turning a sheet reference into raw tabular text.

    Raises errors.StrategyError (or a requests exception) on failure.
    """

    name: str

    def fetch(self, ref: SheetRef) -> str:
        ...
