"""
Metric descriptors for snapshot stats.

Each descriptor pairs the static metadata (name, help, kind, label names)
with two pure functions: one that pulls a number out of a domain object and
one that builds the label values. Two lists exist, one applied to the last
snapshot of a repository and one applied to the whole repository. Both are
built once and never mutated.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Callable, Iterator, Tuple

from snapstat.models import QUALIFYING_STATES, RepositoryStats, SnapshotRecord

DEFAULT_NAMESPACE = "elasticsearch"
SUBSYSTEM = "snapshot_stats"

SNAPSHOT_LABELS = ("repository", "state", "version")
REPOSITORY_LABELS = ("repository",)


class MetricKind(enum.Enum):
    COUNTER = "counter"
    GAUGE = "gauge"


@dataclass(frozen=True)
class MetricDescriptor:
    kind: MetricKind
    name: str
    help_text: str
    label_names: Tuple[str, ...]
    value: Callable[[Any], float]
    labels: Callable[..., Tuple[str, ...]]


def build_fqname(namespace: str, subsystem: str, name: str) -> str:
    """Join non-empty parts with underscores, like Prometheus client libraries do."""
    return "_".join(part for part in (namespace, subsystem, name) if part)


def _snapshot_label_values(repository: str, snapshot: SnapshotRecord) -> Tuple[str, ...]:
    return (repository, snapshot.state, snapshot.version)


def _repository_label_values(repository: str) -> Tuple[str, ...]:
    return (repository,)


def _snapshot_gauge(namespace: str, name: str, help_text: str,
                    value: Callable[[SnapshotRecord], float]) -> MetricDescriptor:
    return MetricDescriptor(
        kind=MetricKind.GAUGE,
        name=build_fqname(namespace, SUBSYSTEM, name),
        help_text=help_text,
        label_names=SNAPSHOT_LABELS,
        value=value,
        labels=_snapshot_label_values,
    )


def _repository_gauge(namespace: str, name: str, help_text: str,
                      value: Callable[[RepositoryStats], float]) -> MetricDescriptor:
    return MetricDescriptor(
        kind=MetricKind.GAUGE,
        name=build_fqname(namespace, SUBSYSTEM, name),
        help_text=help_text,
        label_names=REPOSITORY_LABELS,
        value=value,
        labels=_repository_label_values,
    )


def oldest_snapshot_timestamp(stats: RepositoryStats) -> float:
    if not stats.snapshots:
        return 0
    return float(stats.snapshots[0].start_time_seconds)


def latest_qualifying_snapshot_timestamp(stats: RepositoryStats) -> float:
    """Start time of the newest SUCCESS or PARTIAL snapshot.

    Scans from the end because the API lists snapshots oldest first.
    Returns 0 when nothing qualifies, so 0 means "none", not the epoch.
    """
    for snapshot in reversed(stats.snapshots):
        if snapshot.state in QUALIFYING_STATES:
            return float(snapshot.start_time_seconds)
    return 0


def build_snapshot_descriptors(namespace: str = DEFAULT_NAMESPACE) -> Tuple[MetricDescriptor, ...]:
    return (
        _snapshot_gauge(
            namespace, "snapshot_number_of_indices",
            "Number of indices in the last snapshot",
            lambda s: float(len(s.indices)),
        ),
        _snapshot_gauge(
            namespace, "snapshot_start_time_timestamp",
            "Last snapshot start timestamp",
            lambda s: float(s.start_time_seconds),
        ),
        _snapshot_gauge(
            namespace, "snapshot_end_time_timestamp",
            "Last snapshot end timestamp",
            lambda s: float(s.end_time_seconds),
        ),
        _snapshot_gauge(
            namespace, "snapshot_number_of_failures",
            "Last snapshot number of failures",
            lambda s: float(len(s.failures)),
        ),
        _snapshot_gauge(
            namespace, "snapshot_total_shards",
            "Last snapshot total shards",
            lambda s: float(s.shards.total),
        ),
        _snapshot_gauge(
            namespace, "snapshot_failed_shards",
            "Last snapshot failed shards",
            lambda s: float(s.shards.failed),
        ),
        _snapshot_gauge(
            namespace, "snapshot_successful_shards",
            "Last snapshot successful shards",
            lambda s: float(s.shards.successful),
        ),
    )


def build_repository_descriptors(namespace: str = DEFAULT_NAMESPACE) -> Tuple[MetricDescriptor, ...]:
    return (
        _repository_gauge(
            namespace, "number_of_snapshots",
            "Number of snapshots in a repository",
            lambda r: float(len(r.snapshots)),
        ),
        _repository_gauge(
            namespace, "oldest_snapshot_timestamp",
            "Timestamp of the oldest snapshot",
            oldest_snapshot_timestamp,
        ),
        _repository_gauge(
            namespace, "latest_snapshot_timestamp_seconds",
            "Timestamp of the latest SUCCESS or PARTIAL snapshot",
            latest_qualifying_snapshot_timestamp,
        ),
    )


class DescriptorRegistry:
    """The two descriptor lists for one collector. Read-only after construction."""

    def __init__(self, namespace: str = DEFAULT_NAMESPACE):
        self._snapshot = build_snapshot_descriptors(namespace)
        self._repository = build_repository_descriptors(namespace)

    @property
    def snapshot(self) -> Tuple[MetricDescriptor, ...]:
        return self._snapshot

    @property
    def repository(self) -> Tuple[MetricDescriptor, ...]:
        return self._repository

    def all(self) -> Tuple[MetricDescriptor, ...]:
        return self._snapshot + self._repository

    def __iter__(self) -> Iterator[MetricDescriptor]:
        return iter(self.all())

    def __len__(self) -> int:
        return len(self._snapshot) + len(self._repository)
