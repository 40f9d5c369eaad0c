#!/usr/bin/env python3
"""
FastAPI application factory for the metrics adapter
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from ..api.nrdb_client import NerdGraphClient, QueryExecutor
from ..api.routes.metrics_routes import create_metrics_routes
from ..provider import Provider
from .config import AdapterConfig

logger = logging.getLogger("metrics_adapter.server")


def build_provider(config: AdapterConfig, executor: Optional[QueryExecutor] = None) -> Provider:
    """Wire the provider from config; a NerdGraph client is created unless an executor is given."""
    if executor is None:
        executor = NerdGraphClient(
            api_key=config.resolve_api_key(),
            region=config.region,
            timeout=config.query_timeout,
        )
    return Provider(
        catalog=config.catalog(),
        executor=executor,
        account_id=config.account_id,
        cluster_name=config.cluster_name,
        query_timeout=config.query_timeout,
    )


def create_app(config: AdapterConfig, executor: Optional[QueryExecutor] = None) -> FastAPI:
    """Create the FastAPI app serving external.metrics.k8s.io/v1beta1."""
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    provider = build_provider(config, executor)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            f"Serving {len(provider.catalog)} external metrics for cluster "
            f"'{config.cluster_name}' (account {config.account_id}, region {config.region})"
        )
        yield
        aclose = getattr(provider.executor, "aclose", None)
        if aclose is not None:
            await aclose()

    app = FastAPI(title="nrql-metrics-adapter", lifespan=lifespan)
    app.include_router(create_metrics_routes(provider))

    @app.get("/healthz")
    async def healthz():
        return {"status": "ok"}

    return app
