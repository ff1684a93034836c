"""QoS metrics collector for SLURM.

Aggregates running and pending jobs from squeue by quality of service and
generates per-QoS Prometheus gauges.
"""

from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from prometheus_client.metrics_core import Metric

from .. import slurmcli
from .gauges import GaugeShape, generate_positive_gauges, new_families

LABELS = ("qos",)

METRICS = (
    GaugeShape("cpus_allocated", "slurm_qos_cpus_allocated", "Allocated CPUs for QOS"),
    GaugeShape("jobs_running", "slurm_qos_jobs_running", "Running jobs for QOS"),
    GaugeShape("jobs_pending", "slurm_qos_jobs_pending", "Pending jobs for QOS"),
    GaugeShape("jobs_total", "slurm_qos_jobs_total", "Total jobs for QOS"),
)


@dataclass
class QosMetric:
    """Aggregated CPU and job counts for a single QoS."""

    cpus_allocated: float = 0.0
    jobs_running: int = 0
    jobs_pending: int = 0
    jobs_total: int = 0


def aggregate(
    running: Iterable[slurmcli.types.RawQosJobData],
    pending: Iterable[str],
) -> dict[str, QosMetric]:
    """Fold running and pending jobs into per-QoS metrics.

    Unlike partitions, a QoS entry is created by whichever job mentions it
    first, so a QoS with only pending jobs is still reported.

    Args:
        running: QoS and CPU count of each running job.
        pending: QoS name of each pending job.

    Returns:
        Mapping of QoS name to metrics.
    """
    qoses: dict[str, QosMetric] = {}

    for job in running:
        if not job.qos:
            continue
        qos = qoses.setdefault(job.qos, QosMetric())
        qos.cpus_allocated += job.cpus
        qos.jobs_running += 1
        qos.jobs_total += 1

    for name in pending:
        if not name:
            continue
        qos = qoses.setdefault(name, QosMetric())
        qos.jobs_pending += 1
        qos.jobs_total += 1

    return qoses


def fetch(client: slurmcli.SlurmCliClient) -> dict[str, QosMetric]:
    """Fetch QoS metrics from the Slurm CLI.

    Args:
        client: CLI client to use for fetching.

    Returns:
        Mapping of QoS name to metrics.

    Raises:
        SlurmCommandError: If squeue fails.
    """
    return aggregate(
        client.get_running_qos_jobs(),
        client.get_job_qos(slurmcli.JOB_STATE_PENDING),
    )


def describe_metrics() -> Iterator[Metric]:
    """Yield the QoS gauge families without samples."""
    yield from new_families(METRICS, LABELS)


def generate_metrics(qoses: dict[str, QosMetric]) -> Iterator[Metric]:
    """Generate Prometheus metrics from QoS data.

    Args:
        qoses: Mapping of QoS name to metrics.

    Yields:
        One gauge family per QoS metric, labeled by qos.
    """
    yield from generate_positive_gauges(
        METRICS,
        LABELS,
        (((name,), qos) for name, qos in qoses.items()),
    )
