"""
Option resolution per role.

- sex : first option matching an "all persons" pattern, else the first listed
        option (best effort, recorded as a warning).
- age : first option matching an "all ages"/"total" pattern; when there is
        none the caller decides between summation and failure.
- time: lexicographically greatest option id.
"""

from __future__ import annotations

import logging
import re
from typing import List, Optional, Sequence
from urllib.parse import quote as _urlencode

from stairval.notepad import Notepad

from .client import OnsClient
from .dimension import DimensionOption
from .errors import MissingOptionError, NoAggregateAvailableError, ResolutionError

logger = logging.getLogger(__name__)

ALL_PERSONS_PATTERN = re.compile(r"all\s*persons|persons|all person")
ALL_AGES_PATTERN = re.compile(r"all\s*ages|\btotal\b")


def fetch_options(client: OnsClient, version_path: str, dimension_id: str) -> List[DimensionOption]:
    """Every option of a dimension, read across all pages."""
    items = client.get_all(f"{version_path}/dimensions/{_urlencode(dimension_id, safe='')}/options")
    options = [DimensionOption.from_payload(i) for i in items]
    logger.debug(f"Dimension {dimension_id!r}: {len(options)} options")
    return options


def select_option(options: Sequence[DimensionOption], pattern: re.Pattern) -> Optional[DimensionOption]:
    """First option whose lowercase label, or failing that id, matches `pattern`."""
    for option in options:
        if pattern.search(option.label.lower()) or pattern.search(option.id.lower()):
            return option
    return None


def resolve_sex_option(options: Sequence[DimensionOption], notepad: Notepad) -> DimensionOption:
    if not options:
        raise MissingOptionError("Missing sex options")
    match = select_option(options, ALL_PERSONS_PATTERN)
    if match is not None:
        return match
    fallback = options[0]
    notepad.add_warning(
        f"No 'all persons' sex option found; using first listed option {fallback.id!r} ({fallback.label!r})"
    )
    return fallback


def find_age_aggregate(options: Sequence[DimensionOption]) -> Optional[DimensionOption]:
    return select_option(options, ALL_AGES_PATTERN)


def numeric_age_options(options: Sequence[DimensionOption]) -> List[DimensionOption]:
    """
    Options whose label is a plain non-negative integer, in listed order.

    Raises
    ------
    NoAggregateAvailableError
        If there are none to sum over.
    """
    numeric = [o for o in options if o.is_numeric_age]
    if not numeric:
        raise NoAggregateAvailableError(
            "No 'all ages' option and no single-year age options to sum"
        )
    return numeric


def latest_time_option(options: Sequence[DimensionOption]) -> DimensionOption:
    """Greatest option id; period codes are assumed to sort as strings."""
    if not options:
        raise ResolutionError("No time found")
    return max(options, key=lambda o: o.id)
