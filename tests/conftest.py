"""Shared fixtures: a fake snapshot API running in a background thread."""

import threading

import pytest

from snapstat.mock.fake_cluster_server import FakeCluster, FakeClusterServer


@pytest.fixture
def cluster() -> FakeCluster:
    return FakeCluster()


@pytest.fixture
def server(cluster):
    srv = FakeClusterServer(cluster)
    thread = threading.Thread(target=srv.serve_forever, daemon=True)
    thread.start()
    try:
        yield srv
    finally:
        srv.shutdown()
        srv.server_close()
