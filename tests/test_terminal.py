"""Tests for the rich rendering helpers."""

from rich.console import Console

from snapstat.collector.base import Sample
from snapstat.collector.descriptors import DescriptorRegistry
from snapstat.collector.snapshots import CycleReport, CycleState
from snapstat.dashboard.terminal import _format_value, build_sample_table, describe_cycle


def _render(renderable) -> str:
    console = Console(width=200, record=True)
    console.print(renderable)
    return console.export_text()


def _latest_descriptor():
    return DescriptorRegistry().repository[2]


def test_zero_timestamp_is_shown_as_missing():
    sample = Sample(_latest_descriptor(), 0.0, ("repo",))
    assert _format_value(sample) == "-"


def test_timestamp_is_formatted_as_utc():
    sample = Sample(_latest_descriptor(), 1_700_000_000.0, ("repo",))
    assert _format_value(sample) == "2023-11-14 22:13:20 UTC"


def test_plain_values_are_compact():
    count = DescriptorRegistry().repository[0]
    assert _format_value(Sample(count, 12.0, ("repo",))) == "12"


def test_sample_table_lists_repositories():
    registry = DescriptorRegistry()
    samples = [
        Sample(registry.repository[0], 3.0, ("zeta",)),
        Sample(registry.snapshot[0], 2.0, ("alpha", "PARTIAL", "8.13.0")),
    ]
    text = _render(build_sample_table(samples))
    assert "alpha" in text and "zeta" in text
    assert "PARTIAL" in text
    assert text.index("alpha") < text.index("zeta")


def test_describe_cycle_mentions_skipped_repositories():
    report = CycleReport(
        state=CycleState.DONE,
        repositories=("a", "b"),
        failed_repositories=("c",),
        sample_count=20,
        duration_seconds=0.5,
    )
    text = describe_cycle(report).plain
    assert "20 samples from 2 repositories" in text
    assert "skipped: c" in text


def test_describe_cycle_aborted():
    report = CycleReport(state=CycleState.ABORTED, error="connection refused")
    assert "connection refused" in describe_cycle(report).plain


def test_out_of_range_timestamp_falls_back_to_number():
    sample = Sample(_latest_descriptor(), 1e20, ("repo",))
    assert _format_value(sample) == "1e+20"
