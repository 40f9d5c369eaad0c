"""
Adapter error kinds.

Every failure surfaced by the selector, query and provider layers derives
from AdapterError so the HTTP layer can map it to a status code.
"""

from typing import Optional


class AdapterError(Exception):
    """Base class for all adapter failures."""


class MetricNotSupportedError(AdapterError):
    """Requested metric name is not in the metrics catalog."""

    def __init__(self, metric_name: str):
        self.metric_name = metric_name
        super().__init__(f"metric {metric_name!r} is not supported")


class SelectorParseError(AdapterError):
    """Label selector text or requirement is syntactically invalid."""


class SelectorTranslationError(AdapterError):
    """A requirement carries an operator the translator cannot render."""


class QueryExecutionError(AdapterError):
    """The backend query could not be executed (network, auth, rejection, deadline)."""

    def __init__(self, message: str, query: Optional[str] = None, cause: Optional[Exception] = None):
        self.query = query
        self.cause = cause
        super().__init__(message)


class EmptyResultError(AdapterError):
    """The backend returned no rows."""

    def __init__(self, query: str):
        self.query = query
        super().__init__(f"query {query!r} returned no results")


class MalformedResultError(AdapterError):
    """The result row lacks a numeric value or a timestamp."""
