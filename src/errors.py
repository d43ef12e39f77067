"""
errors.py
---------
Exception types raised by the fetch -> extract -> persist pipeline.
Per-field parse anomalies (NaN counts, unmatched mission labels) are not
errors and never raise.
"""
from __future__ import annotations

from typing import Optional


class StatsPipelineError(Exception):
    """Base class for pipeline failures surfaced to the caller."""

    def __init__(self, message: str, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class FetchError(StatsPipelineError):
    """The HTML download failed (network error, timeout or non-2xx status)."""

    def __init__(self, message: str, url: str = None, status_code: int = None):
        details = {}
        if url:
            details["url"] = url
        if status_code is not None:
            details["status_code"] = status_code
        super().__init__(message, details)
        self.url = url
        self.status_code = status_code


class EmptyResultError(StatsPipelineError):
    """Extraction produced zero records; the store is never called with an empty batch."""


class PersistenceError(StatsPipelineError):
    """The bulk insert failed and was rolled back as a whole."""
