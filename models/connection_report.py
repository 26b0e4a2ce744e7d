from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class StrategyAttempt(BaseModel):
    strategy: str
    ok: bool
    kind: Optional[str] = None
    error: Optional[str] = None
    duration_ms: int = 0


class ConnectionDiagnostic(BaseModel):
    """Outcome of a test-connection run; never used by the main pipeline."""

    sheet_id: str
    strategy: Optional[str] = None
    status: str
    sample: str = ""
    line_count: int = 0
    columns: Dict[str, Optional[str]] = Field(default_factory=dict)
    attempts: List[StrategyAttempt] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")
