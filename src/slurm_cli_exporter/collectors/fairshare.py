"""Fair-share metrics collector for SLURM.

Reads per user/account fair-share factors from sshare and exports them as a
single gauge labeled by user and account.
"""

from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from prometheus_client.metrics_core import Metric

from .. import slurmcli
from .gauges import GaugeShape, generate_positive_gauges, new_families

LABELS = ("user", "account")

METRICS = (GaugeShape("fairshare", "slurm_user_fairshare", "FairShare for user"),)

UserAccount = tuple[str, str]


@dataclass
class FairShareMetric:
    """Fair-share factor of a single user/account association."""

    fairshare: float = 0.0


def aggregate(
    rows: Iterable[slurmcli.types.RawFairShareData],
) -> dict[UserAccount, FairShareMetric]:
    """Fold sshare rows into fair-share metrics keyed by (user, account).

    A repeated (user, account) row replaces the earlier value.
    """
    metrics: dict[UserAccount, FairShareMetric] = {}
    for row in rows:
        metrics[(row.user, row.account)] = FairShareMetric(fairshare=row.fairshare)
    return metrics


def fetch(client: slurmcli.SlurmCliClient) -> dict[UserAccount, FairShareMetric]:
    """Fetch fair-share metrics from the Slurm CLI.

    Raises:
        SlurmCommandError: If sshare fails.
    """
    return aggregate(client.get_fairshare())


def describe_metrics() -> Iterator[Metric]:
    """Yield the fair-share gauge family without samples."""
    yield from new_families(METRICS, LABELS)


def generate_metrics(
    metrics: dict[UserAccount, FairShareMetric],
) -> Iterator[Metric]:
    """Generate Prometheus metrics from fair-share data."""
    yield from generate_positive_gauges(METRICS, LABELS, metrics.items())
