"""HTTP server for the Slurm CLI Prometheus Exporter."""

import json
import logging
import os
import pathlib
import signal
from typing import Literal

import prometheus_client
import prometheus_client.core
import pydantic
import starlette.applications
import starlette.requests
import starlette.responses
import starlette.routing
import structlog

from . import collector, slurmcli
from .collectors import fairshare, partitions, qos

CONFIG_ENV_VAR = "SLURM_EXPORTER_CONFIG_PATH"
logger = structlog.get_logger(__name__)

CollectorName = Literal["partitions", "qos", "fairshare"]


class ExporterConfig(pydantic.BaseModel):
    """Configuration for the Slurm CLI Prometheus Exporter."""

    sinfo_command: str = pydantic.Field(
        "sinfo",
        description="sinfo executable name or path",
        min_length=1,
    )
    squeue_command: str = pydantic.Field(
        "squeue",
        description="squeue executable name or path",
        min_length=1,
    )
    sshare_command: str = pydantic.Field(
        "sshare",
        description="sshare executable name or path",
        min_length=1,
    )
    command_timeout: pydantic.PositiveFloat | None = pydantic.Field(
        None,
        description="Seconds to wait for each Slurm command, unset waits forever",
    )
    fairshare_accounts: list[str] = pydantic.Field(
        default_factory=list,
        description="Accounts to report fair-share for, empty for all accounts",
    )
    collectors: list[CollectorName] = pydantic.Field(
        default_factory=lambda: ["partitions", "qos", "fairshare"],
        description="Collectors to register",
    )
    port: int = pydantic.Field(9092, description="HTTP server port", gt=0, lt=65536)
    metrics_path: str = pydantic.Field(
        "/metrics",
        description="URL path for metrics endpoint",
    )
    log_level: str = pydantic.Field("INFO", description="Logging level")


def configure_logging(log_level_name: str) -> None:
    """Configure structlog for logfmt output."""
    log_level = getattr(logging, log_level_name.upper(), logging.INFO)
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.EventRenamer("msg"),
            structlog.processors.format_exc_info,
            structlog.processors.LogfmtRenderer(
                key_order=("timestamp", "level", "msg"),
            ),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def load_config(config_path: str) -> ExporterConfig:
    """Load configuration from JSON file."""
    path = pathlib.Path(config_path)
    if not path.exists():
        msg = f"Configuration file not found: {config_path}"
        raise FileNotFoundError(msg)

    with path.open("r") as f:
        data = json.load(f)

    return ExporterConfig(**data)


def create_registry_with_collectors(
    cli_client: slurmcli.SlurmCliClient,
    collectors: list[CollectorName],
) -> prometheus_client.core.CollectorRegistry:
    """Create a Prometheus registry with SLURM collectors.

    Creates a custom registry (not the global one) and registers the
    requested collectors. Dependencies are injected into fetcher functions
    at build time.

    Args:
        cli_client: Shared CLI client for all collectors.
        collectors: Names of the collectors to register.

    Returns:
        Configured Prometheus registry with injected dependencies.
    """
    # Create a custom registry instead of using the global REGISTRY
    registry = prometheus_client.core.CollectorRegistry()

    if "partitions" in collectors:
        partitions_collector = collector.SlurmCollector(
            fetcher=lambda: partitions.fetch(cli_client),
            describer=partitions.describe_metrics,
            generator=partitions.generate_metrics,
            metric_prefix="partition",
        )
        registry.register(partitions_collector)
        logger.info(
            "Registered collector",
            collector="partitions",
            metric_prefix="partition",
        )

    if "qos" in collectors:
        qos_collector = collector.SlurmCollector(
            fetcher=lambda: qos.fetch(cli_client),
            describer=qos.describe_metrics,
            generator=qos.generate_metrics,
            metric_prefix="qos",
        )
        registry.register(qos_collector)
        logger.info("Registered collector", collector="qos", metric_prefix="qos")

    if "fairshare" in collectors:
        fairshare_collector = collector.SlurmCollector(
            fetcher=lambda: fairshare.fetch(cli_client),
            describer=fairshare.describe_metrics,
            generator=fairshare.generate_metrics,
            metric_prefix="user",
        )
        registry.register(fairshare_collector)
        logger.info("Registered collector", collector="fairshare", metric_prefix="user")

    return registry


def terminate() -> None:
    """Ask the running process to shut down."""
    os.kill(os.getpid(), signal.SIGTERM)


def create_starlette_app(
    metrics_path: str,
    registry: prometheus_client.core.CollectorRegistry,
) -> starlette.applications.Starlette:
    """Create a Starlette application for serving Prometheus metrics.

    A failing Slurm command makes the whole scrape fail: the request is
    answered with 503 and the process is terminated instead of serving
    partial metrics.

    Args:
        metrics_path: URL path for metrics endpoint (e.g., "/metrics").
        registry: Prometheus collector registry.

    Returns:
        Configured Starlette application.
    """

    def metrics_endpoint(
        request: starlette.requests.Request,
    ) -> starlette.responses.Response:
        """Generate and serve Prometheus metrics.

        Args:
            request: The incoming HTTP request.

        Returns:
            PlainTextResponse with metrics in Prometheus exposition format.
        """
        logger.info(
            "HTTP request",
            client_ip=request.client.host if request.client else "unknown",
            method=request.method,
            path=request.url.path,
        )
        try:
            metrics_output = prometheus_client.generate_latest(registry)
        except slurmcli.SlurmCommandError as e:
            logger.critical(
                "Slurm command failed, terminating exporter",
                command=e.command,
                returncode=e.returncode,
            )
            terminate()
            return starlette.responses.PlainTextResponse(
                content=f"{e}\n",
                status_code=503,
            )

        return starlette.responses.PlainTextResponse(
            content=metrics_output,
            media_type="text/plain; version=0.0.4; charset=utf-8",
        )

    routes = [
        starlette.routing.Route(metrics_path, metrics_endpoint, methods=["GET"]),
    ]

    return starlette.applications.Starlette(routes=routes)


def create_exporter(config: ExporterConfig) -> starlette.applications.Starlette:
    """Construct the exporter ASGI app from validated config."""
    cli_client = slurmcli.SlurmCliClient(
        sinfo=config.sinfo_command,
        squeue=config.squeue_command,
        sshare=config.sshare_command,
        timeout=config.command_timeout,
        fairshare_accounts=config.fairshare_accounts,
    )
    logger.info(
        "Created shared CLI client",
        sinfo=config.sinfo_command,
        squeue=config.squeue_command,
        sshare=config.sshare_command,
    )

    registry = create_registry_with_collectors(
        cli_client=cli_client,
        collectors=config.collectors,
    )

    return create_starlette_app(
        metrics_path=config.metrics_path,
        registry=registry,
    )


def create_app(config_path: str | None = None) -> starlette.applications.Starlette:
    """Create the exporter ASGI app using a config path or environment default."""
    resolved_path = config_path or os.environ.get(CONFIG_ENV_VAR, "/config.json")
    config = load_config(resolved_path)
    configure_logging(config.log_level)
    return create_exporter(config)
