"""
Fetch-resolve-write pipeline for one local-authority population estimate.

Process:
1) dataset → latest edition → latest version
2) dimension metadata → role assignment (heuristic or static)
3) sex / age / time options
4) one direct observation, or the per-age summation fallback
5) an OutputRecord (the CLI writes it)

Every step consumes the previous step's result; nothing is revisited.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List

from stairval.notepad import Notepad

from .client import OnsClient, version_path
from .dataset import DatasetDescriptor, Edition, Version
from .dimension import Dimension, DimensionRoles
from .errors import MissingOptionError
from .fetcher import build_filters, fetch_observation, sum_age_observations
from .matcher import ROLE_MATCHERS
from .observation import OutputRecord, utc_now_iso
from .options import (
    fetch_options,
    find_age_aggregate,
    latest_time_option,
    numeric_age_options,
    resolve_sex_option,
)
from .resolver import TITLE_PREDICATES, resolve_dataset, resolve_edition, resolve_version

logger = logging.getLogger(__name__)

# Torridge
LA_GSS = "E07000046"


@dataclass(frozen=True)
class PipelineConfig:
    geography: str = LA_GSS
    dimension_strategy: str = "heuristic"
    strict_aggregate: bool = False
    title_match: str = "loose"

    def __post_init__(self):
        if self.dimension_strategy not in ROLE_MATCHERS:
            raise ValueError(f"Unknown dimension strategy: {self.dimension_strategy!r}")
        if self.title_match not in TITLE_PREDICATES:
            raise ValueError(f"Unknown title match: {self.title_match!r}")


@dataclass(frozen=True)
class ResolvedVersion:
    """Dataset/edition/version chosen for the run, plus its dimensions."""

    dataset: DatasetDescriptor
    edition: Edition
    version: Version
    dimensions: List[Dimension] = field(default_factory=list)

    @property
    def path(self) -> str:
        return version_path(self.dataset.id, self.edition.name, self.version.id)


class PopulationPipeline:
    def __init__(self, client: OnsClient, config: PipelineConfig = PipelineConfig()):
        self._client = client
        self.config = config
        self._matcher = ROLE_MATCHERS[config.dimension_strategy]()

    def resolve_version(self) -> ResolvedVersion:
        """Steps 1-2a: catalog resolution and dimension metadata."""
        dataset = resolve_dataset(self._client, TITLE_PREDICATES[self.config.title_match])
        edition = resolve_edition(self._client, dataset)
        version = resolve_version(self._client, dataset, edition)

        path = version_path(dataset.id, edition.name, version.id)
        meta = self._client.get(path)
        dimensions = [Dimension.from_payload(d) for d in meta.get("dimensions") or []]
        logger.info(f"Dimensions: {[(d.id, d.label) for d in dimensions]}")
        return ResolvedVersion(dataset=dataset, edition=edition, version=version, dimensions=dimensions)

    def match_roles(self, resolved: ResolvedVersion, notepad: Notepad) -> DimensionRoles:
        roles = self._matcher.match_roles(resolved.dimensions, notepad)
        logger.info(f"Roles: {roles}")
        return roles

    def run(self, notepad: Notepad) -> OutputRecord:
        resolved = self.resolve_version()
        roles = self.match_roles(resolved, notepad)
        path = resolved.path
        geography = self.config.geography

        sex = resolve_sex_option(fetch_options(self._client, path, roles.sex), notepad)
        age_options = fetch_options(self._client, path, roles.age)
        aggregate = find_age_aggregate(age_options)
        time = latest_time_option(fetch_options(self._client, path, roles.time))
        age_id = aggregate.id if aggregate is not None else None
        logger.info(f"Options: sex={sex.id!r} age={age_id!r} time={time.id!r}")

        if aggregate is not None:
            filters = build_filters(roles, geography, sex.id, aggregate.id, time.id)
            observed = fetch_observation(self._client, path, filters, roles.time, time.label or time.id)
        elif self.config.strict_aggregate:
            raise MissingOptionError("Missing 'all ages' option and summation fallback is disabled")
        else:
            ages = numeric_age_options(age_options)
            logger.info(f"No 'all ages' option; summing {len(ages)} single-year ages")
            observed = sum_age_observations(
                self._client,
                path,
                roles,
                geography,
                sex.id,
                time.id,
                ages,
                time.label or time.id,
                notepad,
            )

        return OutputRecord(
            geography=geography,
            population=observed.value,
            period=str(time.id),
            period_label=str(observed.period_label),
            dataset_id=resolved.dataset.id,
            dataset_title=resolved.dataset.title,
            updated_at=utc_now_iso(),
        )
