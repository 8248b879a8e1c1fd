"""Tests for the snapstat CLI commands (one-shot ones; serve blocks)."""

from click.testing import CliRunner

from snapstat.main import cli
from snapstat.mock.fake_cluster_server import make_snapshot


def test_dump_prints_exposition(cluster, server):
    cluster.snapshots = {"nightly": [make_snapshot("n1", 100_000)]}

    result = CliRunner().invoke(cli, ["--url", server.url, "dump"])

    assert result.exit_code == 0, result.output
    assert 'elasticsearch_snapshot_stats_number_of_snapshots{repository="nightly"} 1.0' in result.output


def test_dump_uses_namespace_option(cluster, server):
    cluster.snapshots = {"nightly": []}

    result = CliRunner().invoke(cli, ["--url", server.url, "--namespace", "es", "dump"])

    assert result.exit_code == 0, result.output
    assert "es_snapshot_stats_number_of_snapshots" in result.output
    assert "elasticsearch_" not in result.output


def test_dump_exits_nonzero_when_catalog_fails(cluster, server):
    cluster.catalog_status = 500

    result = CliRunner().invoke(cli, ["--url", server.url, "dump"])

    assert result.exit_code == 1


def test_url_from_environment(cluster, server):
    cluster.snapshots = {"nightly": []}

    result = CliRunner().invoke(cli, ["dump"], env={"SNAPSTAT_URL": server.url})

    assert result.exit_code == 0, result.output
    assert 'repository="nightly"' in result.output


def test_show_reports_cycle(cluster, server):
    cluster.snapshots = {"nightly": [make_snapshot("n1", 100_000)], "broken": []}
    cluster.broken = {"broken": 500}

    result = CliRunner().invoke(cli, ["--url", server.url, "--workers", "2", "show"])

    assert result.exit_code == 0, result.output
    assert "10 samples from 1 repositories" in result.output
    assert "broken" in result.output


def test_show_exits_nonzero_when_catalog_fails(cluster, server):
    cluster.catalog_status = 503

    result = CliRunner().invoke(cli, ["--url", server.url, "show"])

    assert result.exit_code == 1
    assert "aborted" in result.output


def test_describe_needs_no_cluster():
    result = CliRunner().invoke(cli, ["--url", "http://127.0.0.1:1", "describe"])
    assert result.exit_code == 0, result.output
    assert "gauge" in result.output


def test_rejects_zero_workers():
    result = CliRunner().invoke(cli, ["--workers", "0", "describe"])
    assert result.exit_code != 0
