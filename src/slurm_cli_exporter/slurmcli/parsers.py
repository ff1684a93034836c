"""Line grammars for Slurm CLI output.

Each Slurm query used by the exporter has its own small parser here so that
format drift stays isolated in one place. Parsing is lenient:

- lines that do not match the grammar (missing delimiter, wrong field
  count, empty key) are skipped;
- numeric fields that fail to parse degrade to 0.0 and are logged.

Grammars:
    sinfo -h -o%R,%C          "<partition>,<alloc>/<idle>/<other>/<total>"
    squeue -h -o%P / -o%q     "<name>"
    squeue -h -o%q,%C         "<qos>,<cpus>"
    sshare -n -P -o user,account,fairshare
                              "<user>|<account>|<fairshare>", child rows
                              are indented
"""

import structlog

from .types import RawFairShareData, RawPartitionData, RawQosJobData

logger = structlog.get_logger(__name__)

FIELD_DELIMITER = ","
CPU_STATE_DELIMITER = "/"
SSHARE_DELIMITER = "|"

CPU_STATE_FIELDS = 4
SSHARE_FIELDS = 3


def parse_float(value: str, field: str) -> float:
    """Parse a numeric CLI field, returning 0.0 if it is not a number.

    Args:
        value: Raw field text.
        field: Field name, used only for logging.

    Returns:
        Parsed value, or 0.0 on failure.
    """
    try:
        return float(value)
    except ValueError:
        logger.warning("Failed to parse numeric field", field=field, value=value)
        return 0.0


def parse_partitions(output: str) -> list[RawPartitionData]:
    """Parse `sinfo -h -o%R,%C` output into partition rows.

    Example:
        "gpu,10/5/0/15" -> RawPartitionData(name="gpu", cpus_allocated=10.0,
        cpus_idle=5.0, cpus_other=0.0, cpus_total=15.0)

    Args:
        output: Decoded stdout of sinfo.

    Returns:
        One row per well-formed line, in input order.
    """
    partitions = []
    for line in output.splitlines():
        if FIELD_DELIMITER not in line:
            continue

        fields = line.split(FIELD_DELIMITER)
        name = fields[0]
        states = fields[1].split(CPU_STATE_DELIMITER)
        if not name or len(states) != CPU_STATE_FIELDS:
            logger.debug("Skipping malformed sinfo line", line=line)
            continue

        allocated, idle, other, total = states
        partitions.append(
            RawPartitionData(
                name=name,
                cpus_allocated=parse_float(allocated, "cpus_allocated"),
                cpus_idle=parse_float(idle, "cpus_idle"),
                cpus_other=parse_float(other, "cpus_other"),
                cpus_total=parse_float(total, "cpus_total"),
            ),
        )
    return partitions


def parse_names(output: str) -> list[str]:
    """Parse single-field squeue output (one name per job), skipping blanks."""
    return [line for line in output.splitlines() if line]


def parse_qos_jobs(output: str) -> list[RawQosJobData]:
    """Parse `squeue -h -o%q,%C` output into per-job QoS rows.

    Jobs without a QoS (e.g. ",4") are skipped.

    Args:
        output: Decoded stdout of squeue.

    Returns:
        One row per job carrying a QoS.
    """
    jobs = []
    for line in output.splitlines():
        if FIELD_DELIMITER not in line:
            continue

        qos, cpus = line.split(FIELD_DELIMITER)[:2]
        if not qos:
            continue

        jobs.append(RawQosJobData(qos=qos, cpus=parse_float(cpus, "cpus")))
    return jobs


def parse_fairshare(output: str) -> list[RawFairShareData]:
    """Parse `sshare -n -P -o user,account,fairshare` output.

    Indented lines are the per-account breakdown below a top-level row and
    are skipped, as are rows with an empty user or account.

    Args:
        output: Decoded stdout of sshare.

    Returns:
        One row per top-level user/account line, in input order.
    """
    rows = []
    for line in output.splitlines():
        if line[:1].isspace() or SSHARE_DELIMITER not in line:
            continue

        fields = [item.strip() for item in line.split(SSHARE_DELIMITER)]
        if len(fields) < SSHARE_FIELDS:
            logger.debug("Skipping malformed sshare line", line=line)
            continue

        user, account, fairshare = fields[:SSHARE_FIELDS]
        if not user or not account:
            continue

        rows.append(
            RawFairShareData(
                user=user,
                account=account,
                fairshare=parse_float(fairshare, "fairshare"),
            ),
        )
    return rows
