from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class ProfileRecord(BaseModel):
    """One parsed input row. Immutable for the lifetime of a run."""

    name: str
    designation: str = ""
    organization: str = ""
    image_url: str = ""
    linkedin_url: str = ""

    model_config = ConfigDict(frozen=True, extra="ignore")
