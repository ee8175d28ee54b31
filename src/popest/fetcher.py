"""
Observation queries.

The direct path issues one query with every filter set. The summation path
issues one query per single-year age option, in listed order, and adds the
values up. Requests are strictly sequential and any request error aborts.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Sequence

from stairval.notepad import Notepad

from .client import OnsClient
from .dimension import DimensionOption, DimensionRoles
from .errors import NoObservationError
from .observation import ObservationValue, to_number

logger = logging.getLogger(__name__)


def build_filters(
    roles: DimensionRoles, geography: str, sex_id: str, age_id: str, time_id: str
) -> Dict[str, str]:
    return {
        roles.geography: geography,
        roles.sex: sex_id,
        roles.age: age_id,
        roles.time: time_id,
    }


def _first_observation(payload: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    observations = payload.get("observations") or []
    return observations[0] if observations else None


def extract_raw_value(entry: Optional[Dict[str, Any]]) -> Any:
    """First non-null of `observation` and `value`."""
    if not entry:
        return None
    value = entry.get("observation")
    if value is None:
        value = entry.get("value")
    return value


def _period_label(entry: Optional[Dict[str, Any]], time_dimension: str, default: str) -> str:
    dims = (entry or {}).get("dimensions") or {}
    time_dim = dims.get(time_dimension) or dims.get("time") or dims.get("Time") or {}
    label = time_dim.get("label") if isinstance(time_dim, dict) else None
    return str(label) if label else default


def fetch_observation(
    client: OnsClient,
    version_path: str,
    filters: Dict[str, str],
    time_dimension: str,
    default_period_label: str,
) -> ObservationValue:
    """
    Query a single observation.

    Raises
    ------
    NoObservationError
        If the first observation has no value or a non-numeric one.
    """
    payload = client.get(f"{version_path}/observations", filters)
    entry = _first_observation(payload)
    raw = extract_raw_value(entry)
    value = to_number(raw)
    if value is None:
        raise NoObservationError(f"No observation value for {filters}")
    return ObservationValue(value=value, period_label=_period_label(entry, time_dimension, default_period_label))


def sum_age_observations(
    client: OnsClient,
    version_path: str,
    roles: DimensionRoles,
    geography: str,
    sex_id: str,
    time_id: str,
    age_options: Sequence[DimensionOption],
    default_period_label: str,
    notepad: Notepad,
) -> ObservationValue:
    """Sum one observation per age option; missing or non-numeric values count as 0."""
    total = 0.0
    period_label = ""
    for option in age_options:
        filters = build_filters(roles, geography, sex_id, option.id, time_id)
        payload = client.get(f"{version_path}/observations", filters)
        entry = _first_observation(payload)
        value = to_number(extract_raw_value(entry))
        if value is None:
            notepad.add_warning(f"No numeric observation for age {option.label!r}; counted as 0")
            value = 0.0
        total += value
        if not period_label:
            period_label = _period_label(entry, roles.time, "")

    logger.info(f"Summed {len(age_options)} single-year age observations: {total:g}")
    return ObservationValue(value=total, period_label=period_label or default_period_label)
