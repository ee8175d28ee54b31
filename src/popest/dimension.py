"""
Dimension domain model.

Defines dataset axes, their permissible options, and the role assignment
(which axis is sex, age, time, geography) resolved once per run.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

_NUMERIC_LABEL = re.compile(r"^\d+$")


@dataclass(frozen=True)
class Dimension:
    """
    One axis of a dataset version.

    Attributes:
        id: Dimension identifier used as the observation query key.
        label: Lowercased label, or the id when the API gives no label.
    """

    id: str
    label: str

    @classmethod
    def from_payload(cls, item: dict) -> "Dimension":
        dim_id = str(item.get("id") or item.get("name") or "")
        label = str(item.get("label") or "").lower() or dim_id
        return cls(id=dim_id, label=label)


@dataclass(frozen=True)
class DimensionOption:
    """
    A candidate value along a dimension (e.g. age "45" or "All ages").

    The API reports the identifier as `option`; some listings use `id`.
    """

    id: str
    label: str

    @property
    def is_numeric_age(self) -> bool:
        return bool(_NUMERIC_LABEL.match(self.label.strip()))

    @classmethod
    def from_payload(cls, item: dict) -> "DimensionOption":
        option_id = str(item.get("option") or item.get("id") or "")
        label = item.get("label")
        return cls(id=option_id, label=str(label) if label is not None else option_id)


@dataclass(frozen=True)
class DimensionRoles:
    """Role → dimension id mapping for the four axes the query needs."""

    sex: str
    age: str
    time: str
    geography: str
