from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from config.keywords import HEADER_ALIASES
from errors import EmptyResultError, MalformedInputError, MissingColumnError
from models import ProfileRecord


logger = logging.getLogger(__name__)

NOT_FOUND = -1
_QUOTES = "\"'"


@dataclass(frozen=True)
class ColumnMapping:
    name: int = NOT_FOUND
    designation: int = NOT_FOUND
    organization: int = NOT_FOUND
    image_url: int = NOT_FOUND
    linkedin_url: int = NOT_FOUND

    @property
    def min_cells(self) -> int:
        """A row needs more cells than the highest text-column index."""
        return max(self.name, self.designation, self.organization) + 1


def clean_value(value: Optional[str]) -> str:
    """Trim, drop one leading and one trailing quote, trim again."""
    if not value:
        return ""
    text = value.strip()
    if text[:1] in _QUOTES:
        text = text[1:]
    if text[-1:] in _QUOTES:
        text = text[:-1]
    return text.strip()


def _clean_header(token: str) -> str:
    text = token.strip()
    if len(text) >= 2 and text[0] == text[-1] and text[0] in _QUOTES:
        text = text[1:-1]
    return text.strip()


def find_column_index(headers: Sequence[str], aliases: Sequence[str]) -> int:
    """First alias that appears (case-insensitive substring) in any header wins."""
    lowered = [h.lower() for h in headers]
    for alias in aliases:
        needle = alias.lower()
        for index, header in enumerate(lowered):
            if needle in header:
                return index
    return NOT_FOUND


def resolve_column_mapping(headers: Sequence[str]) -> ColumnMapping:
    return ColumnMapping(**{field: find_column_index(headers, aliases) for field, aliases in HEADER_ALIASES.items()})


def _cell(values: List[str], index: int) -> str:
    if index == NOT_FOUND or index >= len(values):
        return ""
    return clean_value(values[index])


def parse_profiles(raw_text: str) -> List[ProfileRecord]:
    """Parse comma-delimited text into profile records.

    Fields are split on every comma; quoted fields containing commas are not
    supported and will shift the remaining cells of that row.
    """
    lines = (raw_text or "").splitlines()
    non_blank = [line for line in lines if line.strip()]
    if len(lines) < 2 or not non_blank:
        raise MalformedInputError("CSV file must have at least a header row and one data row")

    headers = [_clean_header(h) for h in non_blank[0].split(",")]
    mapping = resolve_column_mapping(headers)
    logger.debug(f"Column mapping: {mapping}", extra={"step": "parse"})
    if mapping.name == NOT_FOUND:
        raise MissingColumnError("name")

    records: List[ProfileRecord] = []
    skipped = 0
    for line_no, line in enumerate(non_blank[1:], start=2):
        values = [clean_value(v) for v in line.split(",")]
        if len(values) < mapping.min_cells:
            logger.debug(f"Skipped line {line_no}: insufficient columns")
            skipped += 1
            continue
        name = _cell(values, mapping.name)
        if not name:
            logger.debug(f"Skipped line {line_no}: no name")
            skipped += 1
            continue
        records.append(ProfileRecord(
            name=name,
            designation=_cell(values, mapping.designation),
            organization=_cell(values, mapping.organization),
            image_url=_cell(values, mapping.image_url),
            linkedin_url=_cell(values, mapping.linkedin_url),
        ))

    if not records:
        raise EmptyResultError("No valid profiles found in CSV. Please check your data format.")
    logger.info(f"Parsed {len(records)} profiles ({skipped} rows skipped)", extra={"step": "parse", "status": "ok"})
    return records


def column_summary(mapping: ColumnMapping, headers: Sequence[str]) -> Dict[str, Optional[str]]:
    """Header matched per field, for diagnostics."""
    out: Dict[str, Optional[str]] = {}
    for field in HEADER_ALIASES:
        index = getattr(mapping, field)
        out[field] = headers[index] if index != NOT_FOUND else None
    return out


def detect_columns(raw_text: str) -> Dict[str, Optional[str]]:
    """Which header each field would bind to, without parsing any rows."""
    for line in (raw_text or "").splitlines():
        if line.strip():
            headers = [_clean_header(h) for h in line.split(",")]
            return column_summary(resolve_column_mapping(headers), headers)
    return {field: None for field in HEADER_ALIASES}
