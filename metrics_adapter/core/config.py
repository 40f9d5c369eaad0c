#!/usr/bin/env python3
"""
Metrics adapter configuration

YAML file -> AdapterConfig (pydantic). The external_metrics section becomes
the read-only metrics catalog; the API key is taken from NEWRELIC_API_KEY
(a .env file is honoured) unless set explicitly in the file.
"""

import logging
import os
from typing import Dict, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

from ..api.queries import validate_label_value
from ..exceptions import SelectorParseError
from ..models import MetricsCatalog, build_catalog

logger = logging.getLogger("metrics_adapter.config")


class MetricDefinition(BaseModel):
    query: str = Field(..., min_length=1)
    add_cluster_filter: bool = False


class AdapterConfig(BaseModel):
    host: str = "0.0.0.0"
    port: int = 6443
    log_level: str = "INFO"
    # New Relic account
    account_id: int
    region: str = "US"
    api_key: Optional[str] = None
    # Cluster identity used by add_cluster_filter metrics
    cluster_name: str = Field(..., min_length=1)
    query_timeout: float = 30.0  # seconds
    external_metrics: Dict[str, MetricDefinition] = Field(default_factory=dict)

    @field_validator("region")
    @classmethod
    def _check_region(cls, value: str) -> str:
        region = value.upper()
        if region not in ("US", "EU"):
            raise ValueError(f"region must be US or EU, got {value!r}")
        return region

    @field_validator("cluster_name")
    @classmethod
    def _check_cluster_name(cls, value: str) -> str:
        # Interpolated into a quoted NRQL literal
        try:
            validate_label_value(value)
        except SelectorParseError as e:
            raise ValueError(f"cluster_name must be a valid label value, got {value!r}") from e
        return value

    def catalog(self) -> MetricsCatalog:
        """Read-only metric name -> Metric mapping."""
        return build_catalog({name: d.model_dump() for name, d in self.external_metrics.items()})

    def resolve_api_key(self) -> str:
        """API key from config, else NEWRELIC_API_KEY; fails if neither is set."""
        key = self.api_key or os.getenv("NEWRELIC_API_KEY")
        if not key:
            raise ValueError("no New Relic API key: set NEWRELIC_API_KEY or api_key in config")
        return key


def load_config_from(path: str) -> AdapterConfig:
    """Load adapter configuration from YAML file."""
    load_dotenv()
    with open(path, "r") as f:
        data = yaml.safe_load(f) or {}
    config = AdapterConfig(**data)
    logger.info(f"Loaded {len(config.external_metrics)} external metrics from {path}")
    return config
