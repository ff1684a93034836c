"""Partition metrics collector for SLURM.

Combines the per-partition CPU state counts from sinfo with the partition
names of running and pending jobs from squeue, and generates per-partition
Prometheus gauges.

Only partitions reported by sinfo become entries. Jobs queued against a
partition that sinfo did not list are dropped.
"""

from collections.abc import Iterable, Iterator
from dataclasses import dataclass

import structlog
from prometheus_client.metrics_core import Metric

from .. import slurmcli
from .gauges import GaugeShape, generate_positive_gauges, new_families

logger = structlog.get_logger(__name__)

LABELS = ("partition",)

METRICS = (
    GaugeShape(
        "cpus_allocated",
        "slurm_partition_cpus_allocated",
        "Allocated CPUs for partition",
    ),
    GaugeShape("cpus_idle", "slurm_partition_cpus_idle", "Idle CPUs for partition"),
    GaugeShape("cpus_other", "slurm_partition_cpus_other", "Other CPUs for partition"),
    GaugeShape(
        "jobs_running",
        "slurm_partition_jobs_running",
        "Running jobs for partition",
    ),
    GaugeShape(
        "jobs_pending",
        "slurm_partition_jobs_pending",
        "Pending jobs for partition",
    ),
    GaugeShape("jobs_total", "slurm_partition_jobs_total", "Total jobs for partition"),
    GaugeShape("cpus_total", "slurm_partition_cpus_total", "Total CPUs for partition"),
)


@dataclass
class PartitionMetric:
    """Aggregated CPU and job counts for a single partition.

    CPU counts are copied from sinfo, not derived. jobs_total is only ever
    incremented together with jobs_running or jobs_pending.
    """

    cpus_allocated: float = 0.0
    cpus_idle: float = 0.0
    cpus_other: float = 0.0
    cpus_total: float = 0.0
    jobs_running: int = 0
    jobs_pending: int = 0
    jobs_total: int = 0


def aggregate(
    states: Iterable[slurmcli.types.RawPartitionData],
    running: Iterable[str],
    pending: Iterable[str],
) -> dict[str, PartitionMetric]:
    """Fold partition states and job partition names into partition metrics.

    Args:
        states: Partition rows from sinfo. A repeated name overwrites the
            earlier CPU counts.
        running: Partition name of each running job.
        pending: Partition name of each pending job.

    Returns:
        Mapping of partition name to metrics, one entry per partition in
        states.
    """
    partitions: dict[str, PartitionMetric] = {}

    for state in states:
        partition = partitions.setdefault(state.name, PartitionMetric())
        partition.cpus_allocated = state.cpus_allocated
        partition.cpus_idle = state.cpus_idle
        partition.cpus_other = state.cpus_other
        partition.cpus_total = state.cpus_total

    unknown = 0
    for name in running:
        if name not in partitions:
            unknown += 1
            continue
        partitions[name].jobs_running += 1
        partitions[name].jobs_total += 1

    for name in pending:
        if name not in partitions:
            unknown += 1
            continue
        partitions[name].jobs_pending += 1
        partitions[name].jobs_total += 1

    if unknown:
        logger.debug("Dropped jobs in partitions unknown to sinfo", jobs=unknown)

    return partitions


def fetch(client: slurmcli.SlurmCliClient) -> dict[str, PartitionMetric]:
    """Fetch partition metrics from the Slurm CLI.

    Args:
        client: CLI client to use for fetching.

    Returns:
        Mapping of partition name to metrics.

    Raises:
        SlurmCommandError: If any of the underlying commands fails.
    """
    return aggregate(
        client.get_partitions(),
        client.get_job_partitions(slurmcli.JOB_STATE_RUNNING),
        client.get_job_partitions(slurmcli.JOB_STATE_PENDING),
    )


def describe_metrics() -> Iterator[Metric]:
    """Yield the partition gauge families without samples."""
    yield from new_families(METRICS, LABELS)


def generate_metrics(partitions: dict[str, PartitionMetric]) -> Iterator[Metric]:
    """Generate Prometheus metrics from partition data.

    Args:
        partitions: Mapping of partition name to metrics.

    Yields:
        One gauge family per partition metric, labeled by partition.
    """
    yield from generate_positive_gauges(
        METRICS,
        LABELS,
        (((name,), partition) for name, partition in partitions.items()),
    )
