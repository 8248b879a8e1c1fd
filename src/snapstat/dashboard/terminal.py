"""Rich tables for one collection cycle and for the advertised descriptors."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Iterable, List, Optional

from rich.console import Console
from rich.table import Table
from rich.text import Text

from snapstat.collector.base import Sample
from snapstat.collector.descriptors import MetricDescriptor
from snapstat.collector.snapshots import CycleReport, CycleState

log = logging.getLogger(__name__)

# Samples whose value is a unix timestamp in seconds
_TIMESTAMP_SUFFIXES = ("_timestamp", "_timestamp_seconds")


def _format_value(sample: Sample) -> str:
    if sample.descriptor.name.endswith(_TIMESTAMP_SUFFIXES):
        if sample.value == 0:
            # zero means no matching snapshot, not 1970
            return "-"
        try:
            when = datetime.fromtimestamp(sample.value, tz=timezone.utc)
        except (ValueError, OverflowError, OSError):
            # out of datetime range, show the raw number
            return f"{sample.value:g}"
        return when.strftime("%Y-%m-%d %H:%M:%S UTC")
    return f"{sample.value:g}"


def _color_for_state(state: str) -> str:
    return {
        "SUCCESS": "green",
        "PARTIAL": "yellow",
        "IN_PROGRESS": "cyan",
    }.get(state, "red")


def build_sample_table(samples: List[Sample], title: Optional[str] = None) -> Table:
    table = Table(title=title, show_header=True, header_style="bold")
    table.add_column("Repository", style="cyan")
    table.add_column("Metric")
    table.add_column("State", width=12)
    table.add_column("Value", justify="right")

    for sample in sorted(samples, key=lambda s: (s.label_values[0], s.descriptor.name)):
        labels = sample.labels
        state = labels.get("state", "")
        table.add_row(
            labels.get("repository", ""),
            sample.descriptor.name,
            Text(state, style=_color_for_state(state)) if state else "",
            _format_value(sample),
        )
    return table


def build_descriptor_table(descriptors: Iterable[MetricDescriptor]) -> Table:
    table = Table(show_header=True, header_style="bold")
    table.add_column("Name", style="cyan")
    table.add_column("Type", width=8)
    table.add_column("Labels")
    table.add_column("Help")
    for d in descriptors:
        table.add_row(d.name, d.kind.value, ", ".join(d.label_names), d.help_text)
    return table


def describe_cycle(report: CycleReport) -> Text:
    if report.state is CycleState.ABORTED:
        return Text(f"Cycle aborted after {report.duration_seconds:.2f}s: {report.error}", style="bold red")

    line = Text(
        f"{report.sample_count} samples from {len(report.repositories)} repositories "
        f"in {report.duration_seconds:.2f}s"
    )
    if report.failed_repositories:
        line.append(f"  (skipped: {', '.join(report.failed_repositories)})", style="yellow")
    return line


def print_cycle(
    samples: List[Sample],
    report: CycleReport,
    source_name: str,
    console: Optional[Console] = None,
):
    console = console or Console()
    log.info("Rendering %d samples from %s", len(samples), source_name)
    if samples:
        console.print(build_sample_table(samples, title=source_name))
    console.print(describe_cycle(report))
