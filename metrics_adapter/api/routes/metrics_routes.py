#!/usr/bin/env python3
"""
Metrics Routes - external.metrics.k8s.io/v1beta1 discovery and value reads
"""

import logging
import time
from typing import Optional

from fastapi import APIRouter, HTTPException, Query, Request

from ...core.audit import audit_logger
from ...exceptions import (
    AdapterError, EmptyResultError, MalformedResultError, MetricNotSupportedError,
    QueryExecutionError, SelectorParseError, SelectorTranslationError,
)
from ...provider import Provider
from ..queries import parse_selector
from ..schemas import (
    GROUP_VERSION, APIResource, APIResourceList, ExternalMetricValue, ExternalMetricValueList,
    format_quantity, format_timestamp,
)

logger = logging.getLogger("metrics_adapter.server")

# Adapter error kind -> HTTP status
ERROR_STATUS = {
    SelectorParseError: 400,
    SelectorTranslationError: 400,
    MetricNotSupportedError: 404,
    QueryExecutionError: 502,
    EmptyResultError: 500,
    MalformedResultError: 500,
}


def status_for(error: AdapterError) -> int:
    for kind, status_code in ERROR_STATUS.items():
        if isinstance(error, kind):
            return status_code
    return 500


def create_metrics_routes(provider: Provider) -> APIRouter:
    """Create external metrics routes backed by the given provider."""
    router = APIRouter()

    @router.get(f"/apis/{GROUP_VERSION}", response_model=APIResourceList)
    async def list_external_metrics():
        """Discovery document listing every supported metric."""
        return APIResourceList(resources=[APIResource(name=name) for name in provider.list_metrics()])

    @router.get(f"/apis/{GROUP_VERSION}/namespaces/{{namespace}}/{{metric_name}}",
                response_model=ExternalMetricValueList)
    async def get_external_metric(
        request: Request,
        namespace: str,
        metric_name: str,
        label_selector: Optional[str] = Query(None, alias="labelSelector"),
    ):
        """Current value of an external metric, filtered by labelSelector."""
        started = time.monotonic()
        try:
            selector = parse_selector(label_selector)
            result = await provider.get_value(metric_name, selector)
            item = ExternalMetricValue(
                metricName=metric_name,
                metricLabels=selector.equality_labels(),
                timestamp=format_timestamp(result.timestamp),
                value=format_quantity(result.value),
            )
        except AdapterError as e:
            audit_logger.metric_request(
                metric_name, namespace, label_selector or "", success=False,
                duration_ms=(time.monotonic() - started) * 1000, error=e, request=request,
            )
            status_code = status_for(e)
            if status_code >= 500:
                logger.error(f"Failed to get metric {metric_name} ({label_selector or 'no selector'}): {e}")
            else:
                logger.warning(f"Rejected metric request {metric_name} ({label_selector or 'no selector'}): {e}")
            raise HTTPException(status_code=status_code, detail=str(e))

        audit_logger.metric_request(
            metric_name, namespace, str(selector), success=True,
            duration_ms=(time.monotonic() - started) * 1000, request=request,
        )
        return ExternalMetricValueList(items=[item])

    return router
