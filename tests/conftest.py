"""Pytest configuration and shared fixtures"""
import asyncio
import time

import pytest

from metrics_adapter.models import build_catalog
from metrics_adapter.provider import Provider


class FakeExecutor:
    """Query executor double recording every query it receives"""

    def __init__(self, rows=None, error=None, delay=0.0):
        self.rows = rows if rows is not None else []
        self.error = error
        self.delay = delay
        self.queries = []
        self.accounts = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def query(self, account_id, nrql):
        self.accounts.append(account_id)
        self.queries.append(nrql)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
        finally:
            self.in_flight -= 1
        if self.error is not None:
            raise self.error
        return self.rows

    @property
    def query_text(self):
        """Last query received"""
        return self.queries[-1] if self.queries else None


@pytest.fixture
def sample_row():
    """A well-formed NRDB result row"""
    return {"timestamp": int(time.time() * 1000), "value": 1.0}


@pytest.fixture
def fake_executor(sample_row):
    """Executor returning one well-formed row"""
    return FakeExecutor(rows=[sample_row])


@pytest.fixture
def catalog():
    """Catalog with a plain metric and a cluster-scoped metric"""
    return build_catalog({
        "test": {"query": "select test from testSample"},
        "test_cluster": {"query": "select test from testSample", "add_cluster_filter": True},
    })


@pytest.fixture
def provider(catalog, fake_executor):
    """Provider wired to the fake executor"""
    return Provider(
        catalog=catalog,
        executor=fake_executor,
        account_id=1234567,
        cluster_name="testCluster",
    )


@pytest.fixture
def config_file(tmp_path):
    """Minimal adapter config written to disk"""
    path = tmp_path / "config.yaml"
    path.write_text(
        "account_id: 1234567\n"
        "region: eu\n"
        "cluster_name: testCluster\n"
        "query_timeout: 5\n"
        "external_metrics:\n"
        "  test:\n"
        "    query: select test from testSample\n"
        "  test_cluster:\n"
        "    query: select test from testSample\n"
        "    add_cluster_filter: true\n"
    )
    return path


@pytest.fixture
def make_executor():
    """Factory for executor doubles with custom rows, errors or delays"""
    return FakeExecutor
