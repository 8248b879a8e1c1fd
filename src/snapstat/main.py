"""
snapstat entry point.

Usage:
    snapstat --url http://localhost:9200 serve --port 9114   Serve /metrics
    snapstat --url http://localhost:9200 show                One cycle as a table
    snapstat --url http://localhost:9200 dump                One cycle as Prometheus text
    snapstat describe                                         List metric descriptors
"""

from __future__ import annotations

import logging
import time

import click

from snapstat import __version__
from snapstat.collector.descriptors import DEFAULT_NAMESPACE
from snapstat.collector.snapshots import CycleState, SnapshotsCollector
from snapstat.exposition import build_registry, render

log = logging.getLogger("snapstat")


def _make_collector(ctx) -> SnapshotsCollector:
    return SnapshotsCollector(
        base_url=ctx.obj["url"],
        namespace=ctx.obj["namespace"],
        max_workers=ctx.obj["workers"],
        timeout_seconds=ctx.obj["timeout"],
    )


@click.group()
@click.version_option(version=__version__, prog_name="snapstat")
@click.option("--url", envvar="SNAPSTAT_URL", default="http://localhost:9200", show_default=True,
              help="Elasticsearch base URL")
@click.option("--timeout", default=5.0, show_default=True, help="HTTP timeout in seconds")
@click.option("--workers", default=1, show_default=True, type=click.IntRange(min=1),
              help="Parallel repository fetches per cycle")
@click.option("--namespace", default=DEFAULT_NAMESPACE, show_default=True, help="Metric name prefix")
@click.option("--verbose", is_flag=True, default=False, help="Enable debug logging")
@click.pass_context
def cli(ctx, url: str, timeout: float, workers: int, namespace: str, verbose: bool):
    """snapstat - Elasticsearch snapshot metrics collector."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    ctx.ensure_object(dict)
    ctx.obj["url"] = url
    ctx.obj["timeout"] = timeout
    ctx.obj["workers"] = workers
    ctx.obj["namespace"] = namespace


@cli.command()
@click.option("--port", default=9114, show_default=True, help="Port to serve /metrics on")
@click.option("--addr", default="0.0.0.0", show_default=True, help="Address to bind")
@click.pass_context
def serve(ctx, port: int, addr: str):
    """Serve /metrics; every scrape runs one collection cycle."""
    from prometheus_client import start_http_server

    collector = _make_collector(ctx)
    registry = build_registry(collector)
    start_http_server(port, addr=addr, registry=registry)
    log.info("Serving %s on http://%s:%d/metrics", collector.name(), addr, port)
    click.echo(f"Serving metrics on http://{addr}:{port}/metrics (Ctrl+C to stop)")

    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        pass
    finally:
        collector.close()


@cli.command()
@click.pass_context
def show(ctx):
    """Run one collection cycle and print the samples."""
    from snapstat.dashboard.terminal import print_cycle

    with _make_collector(ctx) as collector:
        samples = collector.collect()
        report = collector.last_cycle
        print_cycle(samples, report, collector.name())

    if report.state is CycleState.ABORTED:
        raise SystemExit(1)


@cli.command()
@click.pass_context
def dump(ctx):
    """Run one collection cycle and print Prometheus text exposition."""
    with _make_collector(ctx) as collector:
        text = render(build_registry(collector))
        report = collector.last_cycle

    if report is not None and report.state is CycleState.ABORTED:
        click.echo(f"Collection failed: {report.error}", err=True)
        raise SystemExit(1)
    click.echo(text, nl=False)


@cli.command()
@click.pass_context
def describe(ctx):
    """List every metric this collector can emit (no network access)."""
    from rich.console import Console
    from snapstat.dashboard.terminal import build_descriptor_table

    with _make_collector(ctx) as collector:
        Console().print(build_descriptor_table(collector.advertise()))


if __name__ == "__main__":
    cli()
