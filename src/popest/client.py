"""
ONS beta API client.

High level
----------
Thin wrapper around a `requests.Session` that knows the API base URL, sends
`Accept: application/json`, and turns every failure into `ApiError` carrying
the HTTP status and the raw response text. There is no retry,
backoff or caching: the first failure aborts the run.

Listing endpoints (`/datasets`, dimension options) are paginated with the
API's `limit`/`offset`/`total_count` fields and read to completion, so a
dimension with more options than one page can hold never silently misses a
match.

Environment
-----------
POPEST_API_BASE : Optional base URL override (default "https://api.beta.ons.gov.uk/v1")
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, List, Optional
from urllib.parse import quote as _urlencode

import requests

from .errors import ApiError

logger = logging.getLogger(__name__)


# ------------------------------------------------------------------------------
# Module configuration
# ------------------------------------------------------------------------------

API_BASE = os.getenv("POPEST_API_BASE", "https://api.beta.ons.gov.uk/v1").rstrip("/")
DEFAULT_PAGE_SIZE = 1000


def version_path(dataset_id: str, edition: str, version: str) -> str:
    """Path prefix shared by every version-scoped endpoint."""
    return (
        f"/datasets/{_urlencode(dataset_id, safe='')}"
        f"/editions/{_urlencode(edition, safe='')}"
        f"/versions/{_urlencode(version, safe='')}"
    )


class OnsClient:
    """
    Sequential GET-only client for the statistics API.

    Parameters
    ----------
    base_url : str, optional
        API root; defaults to POPEST_API_BASE.
    session : requests.Session, optional
        Injected session (tests pass an in-memory fake).
    timeout : float, optional
        Per-request timeout in seconds. None waits indefinitely.
    page_size : int, optional
        `limit` used when reading listings to completion.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        *,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
        page_size: int = DEFAULT_PAGE_SIZE,
    ):
        if page_size < 1:
            raise ValueError(f"page_size must be positive, got {page_size}")
        self.base_url = (base_url or API_BASE).rstrip("/")
        self._session = session or requests.Session()
        self._owns_session = session is None
        self.timeout = timeout
        self.page_size = page_size

    def close(self) -> None:
        if self._owns_session:
            self._session.close()

    def __enter__(self) -> "OnsClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        GET `path` and decode the JSON body.

        Raises
        ------
        ApiError
            On transport failure, non-2xx status, or a non-JSON body.
        """
        url = f"{self.base_url}{path}"
        logger.debug(f"GET {path} params={params}")
        try:
            resp = self._session.get(
                url,
                params=params,
                headers={"Accept": "application/json"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise ApiError(path, None, str(e)) from e

        if not 200 <= resp.status_code < 300:
            raise ApiError(path, resp.status_code, resp.text)
        try:
            return resp.json()
        except ValueError as e:
            raise ApiError(path, resp.status_code, resp.text) from e

    def get_all(self, path: str, params: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """
        Read every `items` entry of a paginated listing.

        Stops when `total_count` is reached, when a page comes back empty, or
        when a page without `total_count` is shorter than the page size.
        A page longer than the page size, or one identical to the previous
        page, means the server ignores `limit`/`offset` and also ends the read.
        """
        items: List[Dict[str, Any]] = []
        offset = 0
        previous: Optional[List[Dict[str, Any]]] = None
        while True:
            page_params = dict(params or {})
            page_params.update({"limit": self.page_size, "offset": offset})
            payload = self.get(path, page_params)

            page = payload.get("items") or []
            if not page or page == previous:
                break
            items.extend(page)
            total = payload.get("total_count")
            if len(page) > self.page_size:
                logger.warning(f"{path} ignored limit={self.page_size}; stopped after {len(page)} items")
                break
            if isinstance(total, int):
                if len(items) >= total:
                    break
            elif len(page) < self.page_size:
                break
            previous = page
            offset += len(page)

        logger.debug(f"Listed {len(items)} items from {path}")
        return items
