"""
Fake Elasticsearch snapshot API for testing without a cluster.

    python -m snapstat.mock.fake_cluster_server
    snapstat --url http://localhost:9201 show

Serves GET /_snapshot and GET /_snapshot/<repo>/_all from an in-memory
FakeCluster. Repositories can be told to answer with an error status or a
garbage body, which is how the tests exercise partial failures.
"""

from __future__ import annotations

import json
import random
from dataclasses import dataclass, field
from http.server import BaseHTTPRequestHandler, HTTPServer
from typing import Dict, List, Optional
from urllib.parse import unquote

_STATES = ["SUCCESS", "SUCCESS", "SUCCESS", "PARTIAL", "FAILED"]


def make_snapshot(
    name: str,
    start_ms: int,
    state: str = "SUCCESS",
    indices: Optional[List[str]] = None,
    duration_ms: int = 60_000,
    failures: Optional[list] = None,
    total_shards: int = 5,
    failed_shards: int = 0,
    version: str = "8.13.0",
) -> dict:
    """One entry of a /_snapshot/<repo>/_all response, in the API's field names."""
    failures = failures or []
    return {
        "snapshot": name,
        "uuid": f"uuid-{name}",
        "version_id": 8130099,
        "version": version,
        "indices": indices if indices is not None else ["logs-1", "logs-2"],
        "include_global_state": True,
        "state": state,
        "start_time_in_millis": start_ms,
        "end_time_in_millis": start_ms + duration_ms,
        "duration_in_millis": duration_ms,
        "failures": failures,
        "shards": {
            "total": total_shards,
            "failed": failed_shards,
            "successful": total_shards - failed_shards,
        },
    }


@dataclass
class FakeCluster:
    """What the fake server answers. Mutate between requests to change it."""

    snapshots: Dict[str, List[dict]] = field(default_factory=dict)
    # repository name -> status code to answer its detail request with
    broken: Dict[str, int] = field(default_factory=dict)
    # repository name -> raw body to answer with (200, not JSON)
    garbage: Dict[str, str] = field(default_factory=dict)
    catalog_status: int = 200
    requests: List[str] = field(default_factory=list)

    def catalog(self) -> dict:
        return {name: {"type": "fs", "settings": {"location": f"/mnt/backups/{name}"}}
                for name in self.snapshots}


def demo_cluster(seed: int = 42, now_ms: int = 1_700_000_000_000) -> FakeCluster:
    """A few repositories with a day of hourly snapshots each."""
    rng = random.Random(seed)
    cluster = FakeCluster()
    for repo in ("nightly", "hourly", "archive"):
        entries = []
        for i in range(24):
            start = now_ms - (24 - i) * 3_600_000
            state = rng.choice(_STATES)
            failed = rng.randint(1, 3) if state == "PARTIAL" else 0
            entries.append(make_snapshot(
                f"{repo}-{i:02d}", start, state=state,
                duration_ms=rng.randint(30_000, 600_000), failed_shards=failed,
                failures=[{"reason": "shard failed"}] * failed,
            ))
        cluster.snapshots[repo] = entries
    cluster.snapshots["empty"] = []
    return cluster


class _ClusterHandler(BaseHTTPRequestHandler):
    server: "FakeClusterServer"

    def do_GET(self):
        cluster = self.server.cluster
        path = self.path.split("?", 1)[0].rstrip("/")
        cluster.requests.append(path)
        parts = [unquote(p) for p in path.split("/") if p]

        if parts == ["_snapshot"]:
            if cluster.catalog_status != 200:
                self._send_json(cluster.catalog_status, {"error": "unavailable"})
            else:
                self._send_json(200, cluster.catalog())
            return

        if len(parts) == 3 and parts[0] == "_snapshot" and parts[2] == "_all":
            repo = parts[1]
            if repo in cluster.broken:
                self._send_json(cluster.broken[repo], {"error": "repository_exception"})
            elif repo in cluster.garbage:
                self._send_raw(200, cluster.garbage[repo].encode())
            elif repo in cluster.snapshots:
                self._send_json(200, {"snapshots": cluster.snapshots[repo], "total": len(cluster.snapshots[repo])})
            else:
                self._send_json(404, {"error": "repository_missing_exception"})
            return

        self._send_json(404, {"error": "not found"})

    def _send_json(self, status: int, payload: dict):
        self._send_raw(status, json.dumps(payload).encode(), "application/json")

    def _send_raw(self, status: int, body: bytes, content_type: str = "text/plain"):
        self.send_response(status)
        self.send_header("Content-Type", content_type)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def log_message(self, format, *args):
        pass  # Suppress request logging noise


class FakeClusterServer(HTTPServer):

    def __init__(self, cluster: FakeCluster, host: str = "127.0.0.1", port: int = 0):
        self.cluster = cluster
        super().__init__((host, port), _ClusterHandler)

    @property
    def url(self) -> str:
        host, port = self.server_address[:2]
        return f"http://{host}:{port}"


def run_fake_server(host: str = "127.0.0.1", port: int = 9201):
    server = FakeClusterServer(demo_cluster(), host, port)
    print(f"Fake snapshot API running at {server.url}/_snapshot")
    print("Press Ctrl+C to stop.\n")
    try:
        server.serve_forever()
    except KeyboardInterrupt:
        pass
    server.server_close()
    print("\nServer stopped.")


if __name__ == "__main__":
    run_fake_server()
