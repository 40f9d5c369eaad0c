#!/usr/bin/env python3
"""
External metrics API Schemas - Pydantic models for external.metrics.k8s.io/v1beta1
"""

import math
from datetime import datetime, timezone
from typing import Any, Dict, List

from pydantic import BaseModel, Field

from ..exceptions import MalformedResultError

GROUP_VERSION = "external.metrics.k8s.io/v1beta1"


def format_quantity(value: float) -> str:
    """
    Render a value as a Kubernetes quantity in milli-units.

    Whole numbers render plainly ("5"), fractional ones in milli ("1500m").
    Sub-milli precision is truncated. Values outside the float range once
    scaled raise MalformedResultError.
    """
    scaled = value * 1000
    if isinstance(scaled, float) and not math.isfinite(scaled):
        raise MalformedResultError(f"value {value!r} cannot be rendered as a quantity")
    milli = int(scaled)
    if milli % 1000 == 0:
        return str(milli // 1000)
    return f"{milli}m"


def format_timestamp(timestamp: Any) -> str:
    """RFC 3339 UTC timestamp from NRDB epoch milliseconds or a datetime."""
    if isinstance(timestamp, datetime):
        moment = timestamp if timestamp.tzinfo else timestamp.replace(tzinfo=timezone.utc)
    elif isinstance(timestamp, (int, float)):
        try:
            moment = datetime.fromtimestamp(timestamp / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError) as e:
            raise MalformedResultError(f"timestamp {timestamp!r} is out of range") from e
    else:
        return str(timestamp)
    return moment.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


class ExternalMetricValue(BaseModel):
    metricName: str
    metricLabels: Dict[str, str] = Field(default_factory=dict)
    timestamp: str
    value: str


class ExternalMetricValueList(BaseModel):
    kind: str = "ExternalMetricValueList"
    apiVersion: str = GROUP_VERSION
    metadata: Dict[str, Any] = Field(default_factory=dict)
    items: List[ExternalMetricValue]


class APIResource(BaseModel):
    name: str
    singularName: str = ""
    namespaced: bool = True
    kind: str = "ExternalMetricValueList"
    verbs: List[str] = Field(default_factory=lambda: ["get"])


class APIResourceList(BaseModel):
    kind: str = "APIResourceList"
    apiVersion: str = "v1"
    groupVersion: str = GROUP_VERSION
    resources: List[APIResource]
