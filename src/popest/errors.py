"""
Error taxonomy for popest.

Every error is fatal: the pipeline never retries and never writes partial
output. The CLI catches `PopEstError` and exits with status 1.
"""

from __future__ import annotations

from typing import Optional


class PopEstError(RuntimeError):
    """Base class for all pipeline failures."""


class ApiError(PopEstError):
    """
    Raised when the statistics API answers with a non-2xx status, returns a
    body that is not JSON, or cannot be reached at all.

    Attributes:
        status_code: HTTP status, or None for transport failures.
        body: Raw response text (empty when there was no response).
        path: The API path that was requested.
    """

    def __init__(self, path: str, status_code: Optional[int], body: str = ""):
        self.path = path
        self.status_code = status_code
        self.body = body
        status = status_code if status_code is not None else "no response"
        super().__init__(f"ONS API {status}: {path} :: {body}")


class ResolutionError(PopEstError):
    """No matching dataset, or an empty edition/version/time listing."""


class DimensionNotFoundError(PopEstError):
    """A mandatory role (sex or age) has no matching dimension."""


class MissingOptionError(PopEstError):
    """A sex or age option cannot be resolved and no fallback applies."""


class NoAggregateAvailableError(PopEstError):
    """No 'all ages' option and no numeric-age options to sum."""


class NoObservationError(PopEstError):
    """The observation query returned no usable value."""
