"""
Base collector interface.

A collector speaks a two-phase protocol: advertise() lists the metric
descriptors it can produce (static, no I/O), and collect() runs one scrape
cycle and returns the samples for it. This keeps the exposition layer
decoupled from where the numbers actually come from.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, List, Tuple

if TYPE_CHECKING:
    from snapstat.collector.descriptors import MetricDescriptor


@dataclass(frozen=True)
class Sample:
    """One numeric observation of a descriptor for the current cycle."""

    descriptor: "MetricDescriptor"
    value: float
    label_values: Tuple[str, ...]

    @property
    def labels(self) -> dict:
        return dict(zip(self.descriptor.label_names, self.label_values))


class MetricsCollector(ABC):
    """Interface for all metrics sources."""

    @abstractmethod
    def advertise(self) -> Tuple["MetricDescriptor", ...]:
        """Every descriptor this collector can emit. Must not touch the network."""
        ...

    @abstractmethod
    def collect(self) -> List[Sample]:
        """Run one scrape cycle. An aborted cycle returns an empty list."""
        ...

    @abstractmethod
    def name(self) -> str:
        """Human-readable name for this source."""
        ...

    def close(self):
        pass

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()
