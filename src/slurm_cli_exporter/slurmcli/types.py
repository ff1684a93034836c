"""Raw row types parsed from Slurm CLI output.

Pydantic models representing a single line of `sinfo`, `squeue` or `sshare`
output after field splitting. Numeric fields have already been coerced to
floats by the parsers; unparseable values arrive here as 0.0.
"""

from pydantic import BaseModel


class RawPartitionData(BaseModel):
    """One `sinfo -o%R,%C` row.

    CPU counts come from the "allocated/idle/other/total" tuple.
    """

    name: str

    cpus_allocated: float = 0.0
    cpus_idle: float = 0.0
    cpus_other: float = 0.0
    cpus_total: float = 0.0


class RawQosJobData(BaseModel):
    """One `squeue -o%q,%C` row for a single job."""

    qos: str
    cpus: float = 0.0


class RawFairShareData(BaseModel):
    """One top-level `sshare -P -o user,account,fairshare` row."""

    user: str
    account: str
    fairshare: float = 0.0
