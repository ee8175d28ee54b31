"""
Role matching: which dataset dimension plays sex, age, time and geography.

Two strategies share the `RoleMatcher` interface:
- HeuristicRoleMatcher: regex over dimension ids/labels, fails fast when sex
  or age cannot be found.
- StaticRoleMatcher: label → id table with prioritized candidate keys and
  literal fallbacks. Never fails, but records every fallback on the notepad
  because the fallback id may not exist in the dataset.
"""

import abc
import logging
import re
import typing

from stairval.notepad import Notepad

from .dimension import Dimension, DimensionRoles
from .errors import DimensionNotFoundError

logger = logging.getLogger(__name__)

SEX_DIMENSION_PATTERN = re.compile(r"sex|persons")
AGE_DIMENSION_PATTERN = re.compile(r"age")

# Conventional ids the heuristic strategy assumes without matching
TIME_DIMENSION_ID = "time"
GEOGRAPHY_DIMENSION_ID = "geography"

# role → (candidate keys in priority order, literal fallback)
STATIC_ROLE_CANDIDATES: dict[str, tuple[tuple[str, ...], str]] = {
    "sex": (("sex", "gender", "persons"), "sex"),
    "age": (("age", "single-year-of-age", "age-groups"), "age"),
    "time": (("time", "year"), "time"),
    "geography": (("geography", "administrative-geography"), "geography"),
}


class RoleMatcher(metaclass=abc.ABCMeta):
    @abc.abstractmethod
    def match_roles(
            self, dimensions: typing.Sequence[Dimension], notepad: Notepad
    ) -> DimensionRoles:
        raise NotImplementedError


class HeuristicRoleMatcher(RoleMatcher):
    def match_roles(
            self, dimensions: typing.Sequence[Dimension], notepad: Notepad
    ) -> DimensionRoles:
        """
        Sex and age are the first dimensions whose id or label matches
        /sex|persons/ and /age/. Time and geography use fixed ids.
        """
        sex = self._find(dimensions, SEX_DIMENSION_PATTERN)
        age = self._find(dimensions, AGE_DIMENSION_PATTERN)
        if sex is None or age is None:
            listing = [{"id": d.id, "label": d.label} for d in dimensions]
            raise DimensionNotFoundError(f"Could not identify sex/age dims from {listing}")
        return DimensionRoles(
            sex=sex.id, age=age.id, time=TIME_DIMENSION_ID, geography=GEOGRAPHY_DIMENSION_ID
        )

    @staticmethod
    def _find(dimensions: typing.Sequence[Dimension], pattern: re.Pattern) -> typing.Optional[Dimension]:
        for dim in dimensions:
            if pattern.search(dim.id.lower()) or pattern.search(dim.label):
                return dim
        return None


class StaticRoleMatcher(RoleMatcher):
    def __init__(self, candidates: typing.Optional[dict[str, tuple[tuple[str, ...], str]]] = None):
        self._candidates = candidates or STATIC_ROLE_CANDIDATES

    def match_roles(
            self, dimensions: typing.Sequence[Dimension], notepad: Notepad
    ) -> DimensionRoles:
        table = self.build_label_table(dimensions)
        resolved = {
            role: self._resolve(role, table, notepad) for role in ("sex", "age", "time", "geography")
        }
        return DimensionRoles(**resolved)

    @staticmethod
    def build_label_table(dimensions: typing.Sequence[Dimension]) -> dict[str, str]:
        """
        Lowercase label → id, plus each lowercase id → id. Labels win when a
        label of one dimension equals the id of another.
        """
        table: dict[str, str] = {}
        for dim in dimensions:
            table.setdefault(dim.id.lower(), dim.id)
        for dim in dimensions:
            table[dim.label] = dim.id
        return table

    def _resolve(self, role: str, table: dict[str, str], notepad: Notepad) -> str:
        keys, fallback = self._candidates[role]
        for key in keys:
            if key in table:
                return table[key]
        notepad.add_warning(
            f"No dimension matched role {role!r} (tried {list(keys)}); defaulting to {fallback!r}"
        )
        logger.info(f"Role {role!r} fell back to literal dimension id {fallback!r}")
        return fallback


ROLE_MATCHERS: dict[str, typing.Callable[[], RoleMatcher]] = {
    "heuristic": HeuristicRoleMatcher,
    "static": StaticRoleMatcher,
}
