"""
Metric catalog models.

The catalog is built once at startup from configuration and exposed as a
read-only mapping; nothing mutates it afterwards.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field


class Metric(BaseModel):
    """An external metric backed by an NRQL query template."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = Field(..., min_length=1)
    query: str = Field(..., min_length=1)  # NRQL missing only WHERE and LIMIT clauses
    add_cluster_filter: bool = Field(False, alias="addClusterFilter")


MetricsCatalog = Mapping[str, Metric]


def build_catalog(definitions: Mapping[str, Mapping[str, Any]]) -> MetricsCatalog:
    """
    Build a read-only catalog from raw metric definitions.

    Args:
        definitions: {metric_name: {"query": ..., "add_cluster_filter": ...}}

    Returns:
        Immutable mapping of metric name to Metric
    """
    catalog = {name: Metric(name=name, **definition) for name, definition in definitions.items()}
    return MappingProxyType(catalog)


@dataclass(frozen=True)
class MetricValue:
    """Scalar value and timestamp extracted from a query result row."""
    value: float
    timestamp: Any  # as returned by NRDB, epoch milliseconds
