"""
Dataset domain model.

Defines the catalog hierarchy entries picked during resolution:
DatasetDescriptor → Edition → Version.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Optional

# fromisoformat on 3.10 accepts exactly 3 or 6 fractional digits
_FRACTION = re.compile(r"(T\d{2}:\d{2}:\d{2})\.(\d+)")


def _six_digit_fraction(match: re.Match) -> str:
    return f"{match.group(1)}.{match.group(2)[:6].ljust(6, '0')}"


def parse_timestamp(value: Any) -> float:
    """
    Parse an ISO-8601 `last_updated` value into epoch seconds.

    Naive timestamps are read as UTC. Missing or unparsable values give 0.0
    so they sort below every real timestamp.
    """
    if not value or not isinstance(value, str):
        return 0.0
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    text = _FRACTION.sub(_six_digit_fraction, text, count=1)
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return 0.0
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.timestamp()


def parse_ordinal(value: Any) -> float:
    """Numeric parse of a version field; anything non-numeric ranks as 0."""
    if isinstance(value, bool):
        return 0.0
    try:
        return float(str(value).strip())
    except (TypeError, ValueError):
        return 0.0


@dataclass(frozen=True)
class DatasetDescriptor:
    """
    Represents the catalog entry selected for the run.

    Attributes:
        id: Opaque dataset identifier used in every later path.
        title: Human-readable dataset title.
    """

    id: str
    title: str


@dataclass(frozen=True)
class Edition:
    """
    A distinct series within a dataset.

    Attributes:
        name: Edition identifier (e.g. "time-series").
        last_updated: Raw `last_updated` string as returned by the API.
    """

    name: str
    last_updated: Optional[str] = None

    @property
    def timestamp(self) -> float:
        return parse_timestamp(self.last_updated)

    @classmethod
    def from_payload(cls, item: dict) -> "Edition":
        return cls(name=str(item.get("edition", "")), last_updated=item.get("last_updated"))


@dataclass(frozen=True)
class Version:
    """
    A revision within an edition.

    Attributes:
        id: Version identifier exactly as it appears in API paths.
    """

    id: str

    @property
    def ordinal(self) -> float:
        return parse_ordinal(self.id)

    @classmethod
    def from_payload(cls, item: dict) -> "Version":
        return cls(id=str(item.get("version", "")))
