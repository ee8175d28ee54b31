"""
Observation domain model.

Defines the scalar value returned by an observation query and the record
persisted at the end of a successful run.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from typing import Any, Optional


def to_number(value: Any) -> Optional[float]:
    """Parse an observation into a finite float; None when missing, non-numeric, NaN or infinite."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        result = float(value)
    else:
        text = str(value).strip().replace(",", "")
        if not text:
            return None
        try:
            result = float(text)
        except ValueError:
            return None
    return result if math.isfinite(result) else None


def utc_now_iso() -> str:
    """Current UTC time as e.g. '2024-05-01T09:30:00.000Z'."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class ObservationValue:
    """
    Attributes:
        value: Numeric observation.
        period_label: Human-readable time label (e.g. "2022").
    """

    value: float
    period_label: str


@dataclass(frozen=True)
class OutputRecord:
    """
    The single artifact written by the pipeline.

    Attributes:
        geography: GSS code of the local authority.
        population: Population estimate (integral values serialize as int).
        period: Time option id the value belongs to.
        period_label: Human-readable period.
        dataset_id: Dataset the value came from.
        dataset_title: Title of that dataset.
        updated_at: ISO-8601 UTC timestamp of the run.
    """

    geography: str
    population: float
    period: str
    period_label: str
    dataset_id: str
    dataset_title: str
    updated_at: str

    def to_dict(self) -> dict[str, Any]:
        out = asdict(self)
        population = self.population
        if isinstance(population, float) and population.is_integer():
            out["population"] = int(population)
        return out
