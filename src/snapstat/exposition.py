"""
Adapter from the collector protocol onto prometheus_client.

prometheus_client calls describe() once when the bridge is registered and
collect() on every scrape, which lines up with advertise() / collect() on
our side.
"""

from __future__ import annotations

from typing import Dict, Iterator, List, Optional

from prometheus_client import CollectorRegistry, generate_latest
from prometheus_client.core import CounterMetricFamily, GaugeMetricFamily, Metric

from snapstat.collector.base import MetricsCollector
from snapstat.collector.descriptors import MetricDescriptor, MetricKind

_FAMILY_TYPES = {
    MetricKind.GAUGE: GaugeMetricFamily,
    MetricKind.COUNTER: CounterMetricFamily,
}


def _empty_family(descriptor: MetricDescriptor) -> Metric:
    family_type = _FAMILY_TYPES[descriptor.kind]
    return family_type(descriptor.name, descriptor.help_text, labels=list(descriptor.label_names))


class PrometheusBridge:
    """Registers a MetricsCollector with a prometheus_client registry."""

    def __init__(self, collector: MetricsCollector):
        self._collector = collector

    def describe(self) -> List[Metric]:
        return [_empty_family(d) for d in self._collector.advertise()]

    def collect(self) -> Iterator[Metric]:
        families: Dict[str, Metric] = {
            d.name: _empty_family(d) for d in self._collector.advertise()
        }
        for sample in self._collector.collect():
            families[sample.descriptor.name].add_metric(list(sample.label_values), sample.value)

        for family in families.values():
            if family.samples:
                yield family


def build_registry(
    collector: MetricsCollector,
    registry: Optional[CollectorRegistry] = None,
) -> CollectorRegistry:
    if registry is None:
        registry = CollectorRegistry(auto_describe=True)
    registry.register(PrometheusBridge(collector))
    return registry


def render(registry: CollectorRegistry) -> str:
    """Prometheus text exposition of everything in the registry."""
    return generate_latest(registry).decode("utf-8")
