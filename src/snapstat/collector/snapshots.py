"""
Collector for Elasticsearch snapshot repositories.

One cycle lists the repository catalog, fetches every repository's
snapshots, then applies the descriptor lists. A failed catalog fetch aborts
the cycle with no samples. A failed repository fetch only drops that
repository; the others still report.
"""

from __future__ import annotations

import enum
import logging
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Sequence, Tuple

import httpx

from snapstat.collector.base import MetricsCollector, Sample
from snapstat.collector.descriptors import DEFAULT_NAMESPACE, DescriptorRegistry, MetricDescriptor
from snapstat.collector.errors import FetchError, TransportError
from snapstat.collector.fetcher import Fetcher, build_url
from snapstat.models import RepositoryCatalog, RepositoryStats

log = logging.getLogger(__name__)


class CycleState(enum.Enum):
    DONE = "done"
    ABORTED = "aborted"


@dataclass(frozen=True)
class CycleReport:
    """What happened during the most recent collect() call."""

    state: CycleState
    repositories: Tuple[str, ...] = ()
    failed_repositories: Tuple[str, ...] = ()
    sample_count: int = 0
    duration_seconds: float = 0.0
    error: Optional[str] = None


class SnapshotsCollector(MetricsCollector):

    def __init__(
        self,
        base_url: str,
        fetcher: Optional[Fetcher] = None,
        namespace: str = DEFAULT_NAMESPACE,
        max_workers: int = 1,
        timeout_seconds: float = 5.0,
    ):
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")

        self._base_url = base_url.rstrip("/")
        self._catalog_url = build_url(self._base_url, "_snapshot")
        self._owns_fetcher = fetcher is None
        self._fetcher = fetcher if fetcher is not None else Fetcher(timeout_seconds=timeout_seconds)
        self._registry = DescriptorRegistry(namespace)
        self._max_workers = max_workers
        self._last_cycle: Optional[CycleReport] = None

    @property
    def registry(self) -> DescriptorRegistry:
        return self._registry

    @property
    def last_cycle(self) -> Optional[CycleReport]:
        return self._last_cycle

    def repository_url(self, repository: str) -> str:
        return build_url(self._base_url, "_snapshot", repository, "_all")

    def advertise(self) -> Tuple[MetricDescriptor, ...]:
        return self._registry.all()

    def collect(self) -> List[Sample]:
        started = time.monotonic()

        try:
            catalog = self._fetcher.fetch(self._catalog_url, RepositoryCatalog)
        except FetchError as e:
            log.error("failed to fetch and decode snapshot stats: %s", e)
            self._last_cycle = CycleReport(
                state=CycleState.ABORTED,
                duration_seconds=time.monotonic() - started,
                error=str(e),
            )
            return []

        repositories = list(catalog)
        stats_by_repository, failed = self._fetch_details(repositories)

        samples: List[Sample] = []
        for repository, stats in stats_by_repository.items():
            samples.extend(self._repository_samples(repository, stats))

        self._last_cycle = CycleReport(
            state=CycleState.DONE,
            repositories=tuple(stats_by_repository),
            failed_repositories=tuple(failed),
            sample_count=len(samples),
            duration_seconds=time.monotonic() - started,
        )
        log.debug(
            "Collected %d samples from %d/%d repositories in %.3fs",
            len(samples), len(stats_by_repository), len(repositories),
            self._last_cycle.duration_seconds,
        )
        return samples

    def _fetch_repository(self, repository: str) -> RepositoryStats:
        # Repository names come from the cluster and may not be valid in a URL path
        try:
            url = self.repository_url(repository)
        except httpx.InvalidURL as e:
            raise TransportError(f"{self._base_url}/_snapshot/{repository!r}/_all", e) from e
        return self._fetcher.fetch(url, RepositoryStats)

    def _fetch_details(
        self, repositories: Sequence[str],
    ) -> Tuple[Dict[str, RepositoryStats], List[str]]:
        results: Dict[str, RepositoryStats] = {}
        failed: List[str] = []

        if self._max_workers == 1 or len(repositories) <= 1:
            for repository in repositories:
                try:
                    results[repository] = self._fetch_repository(repository)
                except FetchError as e:
                    log.warning("Skipping repository %s: %s", repository, e)
                    failed.append(repository)
            return results, failed

        # Results are gathered here on the calling thread, so no locking.
        workers = min(self._max_workers, len(repositories))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="snapstat") as pool:
            futures = {pool.submit(self._fetch_repository, r): r for r in repositories}
            for future in as_completed(futures):
                repository = futures[future]
                try:
                    results[repository] = future.result()
                except FetchError as e:
                    log.warning("Skipping repository %s: %s", repository, e)
                    failed.append(repository)
        return results, failed

    def _repository_samples(self, repository: str, stats: RepositoryStats) -> Iterator[Sample]:
        for descriptor in self._registry.repository:
            yield Sample(
                descriptor=descriptor,
                value=descriptor.value(stats),
                label_values=descriptor.labels(repository),
            )

        if not stats.snapshots:
            return

        # The last snapshot regardless of state, not the latest successful one
        last_snapshot = stats.snapshots[-1]
        for descriptor in self._registry.snapshot:
            yield Sample(
                descriptor=descriptor,
                value=descriptor.value(last_snapshot),
                label_values=descriptor.labels(repository, last_snapshot),
            )

    def name(self) -> str:
        return f"Elasticsearch snapshots ({self._base_url})"

    def close(self):
        if self._owns_fetcher:
            self._fetcher.close()
