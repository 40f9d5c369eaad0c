"""New Relic NerdGraph client for running NRQL queries."""

import logging
import os
from typing import Any, Dict, List, Optional, Protocol

import httpx
from dotenv import load_dotenv

from ..exceptions import QueryExecutionError

load_dotenv()

logger = logging.getLogger("metrics_adapter.server")

NERDGRAPH_URLS = {
    "US": "https://api.newrelic.com/graphql",
    "EU": "https://api.eu.newrelic.com/graphql",
}

NRQL_QUERY = (
    "query($accountId: Int!, $nrql: Nrql!) "
    "{ actor { account(id: $accountId) { nrql(query: $nrql) { results } } } }"
)


class QueryExecutor(Protocol):
    """Capability the provider needs from a query backend."""

    async def query(self, account_id: int, nrql: str) -> List[Dict[str, Any]]:
        """Run an NRQL query and return its result rows."""
        ...


class NerdGraphClient:
    """Client for the NerdGraph GraphQL API."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        region: str = "US",
        base_url: Optional[str] = None,
        timeout: float = 30,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize NerdGraph client.

        Args:
            api_key: New Relic user API key. If None, reads from NEWRELIC_API_KEY env var.
            region: Account region, "US" or "EU"; selects the endpoint unless base_url is given.
            base_url: Explicit GraphQL endpoint override.
            timeout: Per-request HTTP timeout in seconds.
            transport: Optional httpx transport (used by tests).
        """
        self.api_key = api_key or os.getenv("NEWRELIC_API_KEY")
        if not self.api_key:
            raise ValueError("NEWRELIC_API_KEY not found in environment variables")

        region = region.upper()
        if base_url is None and region not in NERDGRAPH_URLS:
            raise ValueError(f"unknown New Relic region {region!r}, expected one of {sorted(NERDGRAPH_URLS)}")

        self.base_url = base_url or NERDGRAPH_URLS[region]
        self._client = httpx.AsyncClient(
            timeout=timeout,
            transport=transport,
            headers={"API-Key": self.api_key, "Content-Type": "application/json"},
        )

    async def query(self, account_id: int, nrql: str) -> List[Dict[str, Any]]:
        """
        Run an NRQL query against an account.

        Args:
            account_id: New Relic account ID
            nrql: Complete NRQL query text

        Returns:
            Result rows as returned by NRDB

        Raises:
            QueryExecutionError: On transport errors, non-2xx responses or GraphQL errors
        """
        payload = {"query": NRQL_QUERY, "variables": {"accountId": account_id, "nrql": nrql}}
        logger.debug(f"Running NRQL on account {account_id}: {nrql}")

        try:
            response = await self._client.post(self.base_url, json=payload)
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPStatusError as e:
            raise QueryExecutionError(
                f"NerdGraph returned HTTP {e.response.status_code} for query {nrql!r}", query=nrql, cause=e
            ) from e
        except httpx.HTTPError as e:
            raise QueryExecutionError(f"NerdGraph request failed for query {nrql!r}: {e}", query=nrql, cause=e) from e
        except ValueError as e:
            raise QueryExecutionError(f"NerdGraph returned invalid JSON for query {nrql!r}", query=nrql, cause=e) from e

        if not isinstance(body, dict):
            raise QueryExecutionError(f"NerdGraph response missing results for query {nrql!r}: not a JSON object", query=nrql)

        errors = body.get("errors")
        if errors:
            if not isinstance(errors, list):
                errors = [errors]
            messages = "; ".join(
                str(err.get("message", err)) if isinstance(err, dict) else str(err) for err in errors
            )
            raise QueryExecutionError(f"NerdGraph rejected query {nrql!r}: {messages}", query=nrql)

        try:
            results = body["data"]["actor"]["account"]["nrql"]["results"]
        except (KeyError, TypeError) as e:
            raise QueryExecutionError(f"NerdGraph response missing results for query {nrql!r}", query=nrql, cause=e) from e

        return results or []

    async def aclose(self) -> None:
        """Release the underlying connection pool."""
        await self._client.aclose()
