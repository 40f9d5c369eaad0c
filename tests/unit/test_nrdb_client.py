"""Unit tests for the NerdGraph client

Tests the NRQL execution client including:
- Endpoint and header selection
- Request payload
- Response parsing
- Error handling
"""
import asyncio
import json
import os
from unittest.mock import patch

import httpx
import pytest

from metrics_adapter.api.nrdb_client import NERDGRAPH_URLS, NRQL_QUERY, NerdGraphClient
from metrics_adapter.exceptions import QueryExecutionError


MOCK_RESULTS_RESPONSE = {
    "data": {
        "actor": {
            "account": {
                "nrql": {
                    "results": [
                        {"timestamp": 1650000000000, "value": 12.5}
                    ]
                }
            }
        }
    }
}

MOCK_GRAPHQL_ERROR_RESPONSE = {
    "data": {"actor": {"account": {"nrql": None}}},
    "errors": [
        {"message": "NRQL Syntax Error: Error at line 1 position 8", "path": ["actor", "account", "nrql"]}
    ]
}


def make_client(handler, **kwargs):
    return NerdGraphClient(api_key="test_key", transport=httpx.MockTransport(handler), **kwargs)


def run_query(client, nrql="select test from testSample limit 1", account_id=1234567):
    async def go():
        try:
            return await client.query(account_id, nrql)
        finally:
            await client.aclose()
    return asyncio.run(go())


class TestNerdGraphClientInit:
    """Test client configuration"""

    def test_init_with_api_key(self):
        client = NerdGraphClient(api_key="test_key_123")
        assert client.api_key == "test_key_123"
        assert client.base_url == NERDGRAPH_URLS["US"]

    def test_eu_region(self):
        client = NerdGraphClient(api_key="k", region="eu")
        assert client.base_url == "https://api.eu.newrelic.com/graphql"

    def test_base_url_override(self):
        client = NerdGraphClient(api_key="k", region="staging", base_url="http://localhost:9999/graphql")
        assert client.base_url == "http://localhost:9999/graphql"

    def test_unknown_region_raises(self):
        with pytest.raises(ValueError, match="unknown New Relic region"):
            NerdGraphClient(api_key="k", region="APAC")

    def test_init_from_environment(self):
        with patch.dict(os.environ, {"NEWRELIC_API_KEY": "env_key_456"}):
            client = NerdGraphClient()
            assert client.api_key == "env_key_456"

    def test_init_without_api_key_raises_error(self):
        with patch.dict(os.environ, {}, clear=True):
            with pytest.raises(ValueError, match="NEWRELIC_API_KEY not found"):
                NerdGraphClient()


class TestNerdGraphQuery:
    """Test query execution"""

    def test_returns_result_rows(self):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["api_key"] = request.headers.get("API-Key")
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json=MOCK_RESULTS_RESPONSE)

        rows = run_query(make_client(handler))

        assert rows == [{"timestamp": 1650000000000, "value": 12.5}]
        assert seen["url"] == NERDGRAPH_URLS["US"]
        assert seen["api_key"] == "test_key"
        assert seen["body"]["query"] == NRQL_QUERY
        assert seen["body"]["variables"] == {
            "accountId": 1234567,
            "nrql": "select test from testSample limit 1",
        }

    def test_empty_results(self):
        body = {"data": {"actor": {"account": {"nrql": {"results": []}}}}}
        rows = run_query(make_client(lambda request: httpx.Response(200, json=body)))
        assert rows == []

    def test_graphql_errors_raise(self):
        client = make_client(lambda request: httpx.Response(200, json=MOCK_GRAPHQL_ERROR_RESPONSE))
        with pytest.raises(QueryExecutionError, match="NRQL Syntax Error") as exc_info:
            run_query(client)
        assert exc_info.value.query == "select test from testSample limit 1"

    @pytest.mark.parametrize("status_code", [401, 403, 500, 503])
    def test_http_errors_raise(self, status_code):
        client = make_client(lambda request: httpx.Response(status_code, json={"error": "nope"}))
        with pytest.raises(QueryExecutionError, match=f"HTTP {status_code}"):
            run_query(client)

    def test_transport_error_raises(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(QueryExecutionError, match="request failed") as exc_info:
            run_query(make_client(handler))
        assert isinstance(exc_info.value.cause, httpx.ConnectError)

    def test_invalid_json_raises(self):
        client = make_client(lambda request: httpx.Response(200, content=b"<html>oops</html>"))
        with pytest.raises(QueryExecutionError, match="invalid JSON"):
            run_query(client)

    def test_missing_results_raises(self):
        client = make_client(lambda request: httpx.Response(200, json={"data": {"actor": None}}))
        with pytest.raises(QueryExecutionError, match="missing results"):
            run_query(client)

    @pytest.mark.parametrize("body", [[], ["results"], "ok", 42])
    def test_non_object_body_raises(self, body):
        client = make_client(lambda request: httpx.Response(200, json=body))
        with pytest.raises(QueryExecutionError, match="missing results"):
            run_query(client)

    def test_non_object_errors_raise(self):
        body = {"errors": ["upstream timeout", {"message": "NRQL Syntax Error"}]}
        client = make_client(lambda request: httpx.Response(200, json=body))
        with pytest.raises(QueryExecutionError, match="upstream timeout; NRQL Syntax Error"):
            run_query(client)

    def test_errors_not_a_list_raise(self):
        client = make_client(lambda request: httpx.Response(200, json={"errors": "quota exceeded"}))
        with pytest.raises(QueryExecutionError, match="quota exceeded"):
            run_query(client)
