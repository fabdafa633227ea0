"""
Error taxonomy for the covmap core.

Only the first two ever reach the session layer; ``LookupMiss`` and
``DivisionUndefined`` are recovered inside the tooltip builder.
"""
from __future__ import annotations

from typing import Optional


class CovmapError(Exception):
    """Base class for covmap errors."""


class MalformedRecordError(CovmapError, ValueError):
    """A feed record lacks a required field or carries an invalid value."""

    def __init__(self, index: int, reason: str, record: Optional[object] = None):
        super().__init__(f"record {index}: {reason}")
        self.index = index
        self.reason = reason
        self.record = record


class EmptyDatasetError(CovmapError, ValueError):
    """Scale derivation was asked for a dataset with no points."""


class LookupMiss(CovmapError, LookupError):
    """A region name could not be resolved to a country code."""


class DivisionUndefined(CovmapError, ZeroDivisionError):
    """Mortality rate requested for a location with zero cases."""
