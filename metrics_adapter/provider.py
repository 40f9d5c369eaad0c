"""
External metrics provider.

Resolves a metric name and label selector to a single value by assembling
an NRQL query, running it through the injected QueryExecutor and reading
the first result row. Nothing is cached: every call runs the query.
"""

import asyncio
import logging
import math
import numbers
from typing import Any, Dict, List, Optional

from .api.nrdb_client import QueryExecutor
from .api.queries import Selector, build_metric_query
from .exceptions import EmptyResultError, MalformedResultError, MetricNotSupportedError, QueryExecutionError
from .models import MetricsCatalog, MetricValue

logger = logging.getLogger("metrics_adapter.server")


class Provider:
    """
    Value retriever for the external metrics API.

    Holds only immutable state (catalog, cluster name, account), so one
    instance serves concurrent requests without locking.
    """

    def __init__(
        self,
        catalog: MetricsCatalog,
        executor: QueryExecutor,
        account_id: int,
        cluster_name: str,
        query_timeout: Optional[float] = None,
    ):
        """
        Args:
            catalog: Read-only mapping of metric name to Metric
            executor: Query execution capability (NerdGraphClient or a test double)
            account_id: New Relic account the queries run against
            cluster_name: Cluster identity used by metrics with add_cluster_filter
            query_timeout: Default per-query deadline in seconds, None for no deadline
        """
        self.catalog = catalog
        self.executor = executor
        self.account_id = account_id
        self.cluster_name = cluster_name
        self.query_timeout = query_timeout

    def list_metrics(self) -> List[str]:
        """Names of all supported metrics, sorted."""
        return sorted(self.catalog)

    def build_query(self, metric_name: str, selector: Optional[Selector] = None) -> str:
        """Assemble the NRQL query for a metric without running it."""
        metric = self.catalog.get(metric_name)
        if metric is None:
            raise MetricNotSupportedError(metric_name)
        return build_metric_query(metric, self.cluster_name, selector)

    async def get_value(
        self,
        metric_name: str,
        selector: Optional[Selector] = None,
        timeout: Optional[float] = None,
    ) -> MetricValue:
        """
        Get the current value of a metric.

        Args:
            metric_name: Catalog metric name
            selector: Label selector narrowing the query, None for no filtering
            timeout: Deadline in seconds for this call, defaults to query_timeout

        Returns:
            MetricValue with the row's value and timestamp

        Raises:
            MetricNotSupportedError: Unknown metric (no query is run)
            SelectorTranslationError: Selector has an unsupported operator
            QueryExecutionError: Backend failure or deadline exceeded
            EmptyResultError: Query returned no rows
            MalformedResultError: Row lacks a numeric value or a timestamp
        """
        query = self.build_query(metric_name, selector)
        deadline = timeout if timeout is not None else self.query_timeout

        try:
            rows = await asyncio.wait_for(self.executor.query(self.account_id, query), timeout=deadline)
        except asyncio.TimeoutError as e:
            raise QueryExecutionError(f"query {query!r} exceeded deadline of {deadline}s", query=query, cause=e) from e

        return extract_value(query, rows)


def extract_value(query: str, rows: List[Dict[str, Any]]) -> MetricValue:
    """
    Read value and timestamp from the first result row.

    More than one row is not expected with "limit 1"; extra rows are ignored.
    """
    if not rows:
        raise EmptyResultError(query)

    if len(rows) > 1:
        logger.debug(f"Query {query!r} returned {len(rows)} rows, using the first")

    row = rows[0]
    if not isinstance(row, dict):
        raise MalformedResultError(f"query {query!r} returned a non-object row: {row!r}")
    value = row.get("value")
    if isinstance(value, bool) or not isinstance(value, numbers.Real):
        raise MalformedResultError(f"query {query!r} returned no numeric 'value' field: {row}")
    if isinstance(value, float) and not math.isfinite(value):
        raise MalformedResultError(f"query {query!r} returned a non-finite value: {value!r}")
    if row.get("timestamp") is None:
        raise MalformedResultError(f"query {query!r} returned no 'timestamp' field: {row}")

    return MetricValue(value=value, timestamp=row["timestamp"])
