"""
GET a URL and decode the JSON body into a typed shape.

The fetcher never logs and never retries. It either returns the decoded
value or raises one of the FetchError subclasses, and leaves the policy
decision (abort the cycle, skip a repository) to its caller.
"""

from __future__ import annotations

import threading
from typing import Any, Dict, Optional, Type, TypeVar

import httpx
from pydantic import TypeAdapter, ValidationError

from snapstat.collector.errors import DecodeError, TransportError, UnexpectedStatusError
from snapstat.models import RepositoryCatalog, RepositoryStats

T = TypeVar("T")


def build_url(base_url: str, *segments: str) -> str:
    """Append path segments to base_url, keeping any path prefix it already has.

    build_url("http://es:9200/proxy/", "_snapshot", "backups", "_all")
    -> "http://es:9200/proxy/_snapshot/backups/_all"
    """
    url = httpx.URL(base_url)
    parts = [url.path.rstrip("/")]
    parts.extend(segment.strip("/") for segment in segments)
    return str(url.copy_with(path="/".join(parts)))


class Fetcher:

    def __init__(
        self,
        client: Optional[httpx.Client] = None,
        timeout_seconds: float = 5.0,
    ):
        self._owns_client = client is None
        self._client = client if client is not None else httpx.Client(timeout=timeout_seconds)
        # Collector shapes are built up front; other shapes are added under the lock
        self._adapters: Dict[Any, TypeAdapter] = {
            shape: TypeAdapter(shape) for shape in (RepositoryCatalog, RepositoryStats)
        }
        self._adapters_lock = threading.Lock()

    def _adapter(self, shape: Any) -> TypeAdapter:
        with self._adapters_lock:
            adapter = self._adapters.get(shape)
            if adapter is None:
                adapter = TypeAdapter(shape)
                self._adapters[shape] = adapter
            return adapter

    def fetch(self, url: str, shape: Type[T]) -> T:
        """GET url and decode the body as `shape`.

        Raises TransportError, UnexpectedStatusError or DecodeError. The
        response is released before this returns, whichever way it exits.
        """
        try:
            with self._client.stream("GET", url) as response:
                if response.status_code != httpx.codes.OK:
                    raise UnexpectedStatusError(url, response.status_code)
                body = response.read()
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise TransportError(url, e) from e

        try:
            return self._adapter(shape).validate_json(body)
        except ValidationError as e:
            raise DecodeError(url, e) from e

    def close(self):
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "Fetcher":
        return self

    def __exit__(self, *exc_info):
        self.close()
