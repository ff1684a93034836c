"""Tests for configuration loading and the HTTP metrics endpoint."""

import json
import pathlib
from unittest.mock import MagicMock, patch

import prometheus_client
import pydantic
import pytest
from starlette.testclient import TestClient

from slurm_cli_exporter import collector, server, slurmcli
from slurm_cli_exporter.collectors import partitions
from slurm_cli_exporter.slurmcli import types


@pytest.fixture
def mock_client() -> MagicMock:
    """Mock SlurmCliClient reporting one busy partition."""
    mock = MagicMock(spec=slurmcli.SlurmCliClient)
    mock.get_partitions.return_value = [
        types.RawPartitionData(
            name="batch",
            cpus_allocated=96,
            cpus_idle=32,
            cpus_other=0,
            cpus_total=128,
        ),
    ]
    mock.get_job_partitions.return_value = ["batch"]
    mock.get_running_qos_jobs.return_value = []
    mock.get_job_qos.return_value = []
    mock.get_fairshare.return_value = []
    return mock


@pytest.fixture
def config_file(tmp_path: pathlib.Path) -> pathlib.Path:
    """A minimal JSON configuration file."""
    path = tmp_path / "config.json"
    path.write_text(
        json.dumps(
            {
                "sinfo_command": "/usr/bin/sinfo",
                "fairshare_accounts": ["qchem", "photonics"],
                "command_timeout": 10,
                "metrics_path": "/slurm",
            },
        ),
    )
    return path


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


def test_config_defaults():
    """All fields have defaults; every collector is enabled."""
    config = server.ExporterConfig()
    assert config.port == 9092
    assert config.metrics_path == "/metrics"
    assert config.command_timeout is None
    assert config.fairshare_accounts == []
    assert config.collectors == ["partitions", "qos", "fairshare"]


def test_config_rejects_unknown_collector():
    """Collector names are validated."""
    with pytest.raises(pydantic.ValidationError):
        server.ExporterConfig(collectors=["nodes"])


def test_config_rejects_non_positive_timeout():
    """command_timeout must be positive when set."""
    with pytest.raises(pydantic.ValidationError):
        server.ExporterConfig(command_timeout=0)


def test_load_config_reads_json(config_file: pathlib.Path):
    """Values from the JSON file override the defaults."""
    config = server.load_config(str(config_file))
    assert config.sinfo_command == "/usr/bin/sinfo"
    assert config.squeue_command == "squeue"
    assert config.fairshare_accounts == ["qchem", "photonics"]
    assert config.command_timeout == 10.0


def test_load_config_missing_file(tmp_path: pathlib.Path):
    """A missing configuration file raises FileNotFoundError."""
    with pytest.raises(FileNotFoundError, match="not found"):
        server.load_config(str(tmp_path / "absent.json"))


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


def test_registry_registers_selected_collectors(mock_client: MagicMock):
    """Only the configured collectors are registered."""
    registry = server.create_registry_with_collectors(mock_client, ["partitions"])
    output = prometheus_client.generate_latest(registry).decode()

    assert 'slurm_partition_cpus_allocated{partition="batch"} 96.0' in output
    assert "slurm_qos_jobs_total" not in output
    assert "slurm_user_fairshare" not in output


def test_registry_all_collectors(mock_client: MagicMock):
    """With every collector enabled all metric families are exposed."""
    registry = server.create_registry_with_collectors(
        mock_client,
        ["partitions", "qos", "fairshare"],
    )
    output = prometheus_client.generate_latest(registry).decode()

    assert "# TYPE slurm_partition_jobs_total gauge" in output
    assert "# TYPE slurm_qos_cpus_allocated gauge" in output
    assert "# TYPE slurm_user_fairshare gauge" in output


# ---------------------------------------------------------------------------
# HTTP endpoint
# ---------------------------------------------------------------------------


def test_metrics_endpoint_serves_exposition(mock_client: MagicMock):
    """The metrics path serves the registry in text exposition format."""
    registry = server.create_registry_with_collectors(mock_client, ["partitions"])
    app = server.create_starlette_app("/metrics", registry)

    response = TestClient(app).get("/metrics")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")
    assert 'slurm_partition_jobs_running{partition="batch"} 1.0' in response.text


def test_metrics_endpoint_terminates_on_command_failure(mock_client: MagicMock):
    """A failing Slurm command answers 503 and terminates the process."""
    mock_client.get_partitions.side_effect = slurmcli.SlurmCommandError(
        ["sinfo", "-h", "-o%R,%C"],
        "exited with status 1",
        returncode=1,
    )
    registry = prometheus_client.CollectorRegistry()
    registry.register(
        collector.SlurmCollector(
            fetcher=lambda: partitions.fetch(mock_client),
            describer=partitions.describe_metrics,
            generator=partitions.generate_metrics,
            metric_prefix="partition",
        ),
    )
    app = server.create_starlette_app("/metrics", registry)

    with patch.object(server, "terminate") as terminate:
        response = TestClient(app).get("/metrics")

    terminate.assert_called_once()
    assert response.status_code == 503
    assert "slurm_partition" not in response.text


def test_create_app_uses_env_config(
    config_file: pathlib.Path,
    monkeypatch: pytest.MonkeyPatch,
):
    """create_app reads the config path from the environment."""
    monkeypatch.setenv(server.CONFIG_ENV_VAR, str(config_file))

    app = server.create_app()

    paths = [route.path for route in app.routes]
    assert paths == ["/slurm"]
