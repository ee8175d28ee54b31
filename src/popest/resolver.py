"""
Catalog resolution: dataset → latest edition → latest version.

Each step takes the previous step's output and never revisits it.
"""

from __future__ import annotations

import logging
import re
from typing import Callable, Iterable, Optional
from urllib.parse import quote as _urlencode

from .client import OnsClient
from .dataset import DatasetDescriptor, Edition, Version
from .errors import ResolutionError

logger = logging.getLogger(__name__)

SEARCH_QUERY = "population estimates"
SEARCH_LIMIT = 200

# Canonical title of the local-authority population estimates dataset(s)
CANONICAL_TITLE_PATTERN = re.compile(
    r"\bpopulation estimates?\b.*\b(local authorit(y|ies)|mid-year)\b", re.IGNORECASE
)

TitlePredicate = Callable[[str], bool]


def looks_like_population_estimate(title: str) -> bool:
    """Loose match: title mentions both 'population' and 'estimate'."""
    t = (title or "").lower()
    return "population" in t and "estimate" in t


def matches_canonical_title(title: str) -> bool:
    """Strict match against the canonical dataset title."""
    return bool(CANONICAL_TITLE_PATTERN.search(title or ""))


TITLE_PREDICATES: dict[str, TitlePredicate] = {
    "loose": looks_like_population_estimate,
    "canonical": matches_canonical_title,
}


def _search_item_to_descriptor(item: dict) -> DatasetDescriptor:
    description = item.get("description") or {}
    dataset_id = description.get("dataset_id") or str(item.get("uri") or "").rstrip("/").split("/")[-1]
    return DatasetDescriptor(id=str(dataset_id or ""), title=str(description.get("title") or ""))


def _listing_item_to_descriptor(item: dict) -> DatasetDescriptor:
    title = item.get("title") or item.get("description") or ""
    return DatasetDescriptor(id=str(item.get("id") or ""), title=str(title))


def _first_match(
    candidates: Iterable[DatasetDescriptor], predicate: TitlePredicate
) -> Optional[DatasetDescriptor]:
    return next((c for c in candidates if predicate(c.title)), None)


def resolve_dataset(
    client: OnsClient, predicate: TitlePredicate = looks_like_population_estimate
) -> DatasetDescriptor:
    """
    Find the dataset to read from.

    1) Search the catalog and take the first title match.
    2) Otherwise list the whole catalog and apply the same predicate.

    Raises
    ------
    ResolutionError
        If neither source has a matching dataset with an id.
    """
    search = client.get(
        "/search",
        {"q": SEARCH_QUERY, "content_type": "dataset", "limit": SEARCH_LIMIT},
    )
    found = _first_match(
        (_search_item_to_descriptor(i) for i in search.get("items") or []), predicate
    )

    if found is None:
        logger.info("No search hit matched; listing the full dataset catalog")
        listing = client.get_all("/datasets")
        found = _first_match((_listing_item_to_descriptor(i) for i in listing), predicate)

    if found is None or not found.id:
        raise ResolutionError("Dataset not found")

    logger.info(f"Using dataset: {found.id} {found.title}")
    return found


def latest_edition(editions: list[Edition]) -> Edition:
    """Most recently updated edition; first-listed wins ties."""
    if not editions:
        raise ResolutionError("No editions")
    # max() keeps the first of equal keys
    return max(editions, key=lambda e: e.timestamp)


def latest_version(versions: list[Version]) -> Version:
    """Highest numeric version; non-numeric counts as 0, first-listed wins ties."""
    if not versions:
        raise ResolutionError("No versions")
    return max(versions, key=lambda v: v.ordinal)


def resolve_edition(client: OnsClient, dataset: DatasetDescriptor) -> Edition:
    payload = client.get(f"/datasets/{_urlencode(dataset.id, safe='')}/editions")
    editions = [Edition.from_payload(i) for i in payload.get("items") or []]
    edition = latest_edition(editions)
    logger.info(f"Latest edition: {edition.name} (last updated {edition.last_updated})")
    return edition


def resolve_version(client: OnsClient, dataset: DatasetDescriptor, edition: Edition) -> Version:
    payload = client.get(
        f"/datasets/{_urlencode(dataset.id, safe='')}"
        f"/editions/{_urlencode(edition.name, safe='')}/versions"
    )
    versions = [Version.from_payload(i) for i in payload.get("items") or []]
    version = latest_version(versions)
    logger.info(f"Latest version: {version.id}")
    return version
