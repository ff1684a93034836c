"""Slurm command-line client package.

Runs the Slurm CLI tools and returns raw, parsed rows with minimal
processing. Aggregation and metric generation are handled by collector
modules.

Exports:
    SlurmCliClient: Subprocess client for sinfo, squeue and sshare.
    SlurmCommandError: Raised when a Slurm command fails.
    parsers: Module containing the per-query line grammars.
    types: Module containing Pydantic models for parsed rows.
    JOB_STATE_RUNNING: squeue state filter for running jobs.
    JOB_STATE_PENDING: squeue state filter for pending jobs.
"""

from . import parsers, types
from .client import (
    JOB_STATE_PENDING,
    JOB_STATE_RUNNING,
    SlurmCliClient,
    SlurmCommandError,
)

__all__ = [
    "JOB_STATE_PENDING",
    "JOB_STATE_RUNNING",
    "SlurmCliClient",
    "SlurmCommandError",
    "parsers",
    "types",
]
