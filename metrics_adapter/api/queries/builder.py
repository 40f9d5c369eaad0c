"""
NRQL query assembly.

Combines a metric's query template with the optional cluster condition and
the translated selector fragment. The cluster condition and the selector
fragment each get their own " where " keyword, so a query carrying both
reads "... where clusterName='c' where key IS NOT NULL limit 1".
"""

from typing import Optional

from .selector import Selector
from .translator import translate_selector

RESULT_LIMIT_SUFFIX = " limit 1"


def build_query(query_template: str, cluster_name: str, add_cluster_filter: bool, filter_fragment: str) -> str:
    """
    Assemble the final NRQL query.

    Args:
        query_template: Metric query missing only filter and limit clauses
        cluster_name: Cluster identity used when add_cluster_filter is set
        add_cluster_filter: Whether to scope the query to cluster_name
        filter_fragment: Output of translate_selector(), possibly empty

    Returns:
        "<template>[ where clusterName='<cluster>'][ where <fragment>] limit 1"
    """
    query = query_template
    if add_cluster_filter:
        query += f" where clusterName='{cluster_name}'"
    if filter_fragment:
        query += f" where {filter_fragment}"
    return query + RESULT_LIMIT_SUFFIX


def build_metric_query(metric, cluster_name: str, selector: Optional[Selector] = None) -> str:
    """Translate the selector and assemble the query for a catalog Metric."""
    return build_query(metric.query, cluster_name, metric.add_cluster_filter, translate_selector(selector))
