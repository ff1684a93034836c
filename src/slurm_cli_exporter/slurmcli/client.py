"""Slurm command-line client.

Runs `sinfo`, `squeue` and `sshare` as subprocesses and returns parsed rows.
Any failure to run a command (missing binary, non-zero exit, timeout) is
raised as SlurmCommandError; retrying or aborting is left to the caller.
"""

import subprocess
import time
from collections.abc import Sequence

import structlog

from . import parsers
from .types import RawFairShareData, RawPartitionData, RawQosJobData

logger = structlog.get_logger(__name__)

JOB_STATE_RUNNING = "RUNNING"
JOB_STATE_PENDING = "PENDING"


class SlurmCommandError(Exception):
    """Raised when a Slurm command cannot be run or exits non-zero."""

    def __init__(
        self,
        command: Sequence[str],
        reason: str,
        returncode: int | None = None,
        stderr: str = "",
    ):
        self.command = list(command)
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(f"{' '.join(self.command)}: {reason}")


class SlurmCliClient:
    """Client for the Slurm command-line tools.

    Lightweight wrapper that builds the argument lists for each query,
    executes them, and hands stdout to the matching parser. Aggregation
    into metrics is delegated to collectors.

    Holds no mutable state, so one instance can be shared by all
    collectors and called from concurrent scrapes.
    """

    def __init__(
        self,
        sinfo: str = "sinfo",
        squeue: str = "squeue",
        sshare: str = "sshare",
        timeout: float | None = None,
        fairshare_accounts: Sequence[str] = (),
    ):
        """Initialize the CLI client.

        Args:
            sinfo: sinfo executable name or path.
            squeue: squeue executable name or path.
            sshare: sshare executable name or path.
            timeout: Seconds to wait for each command, None to wait forever.
            fairshare_accounts: Accounts passed to `sshare -A`; empty means
                all accounts.

        Raises:
            ValueError: If a command name is empty or timeout is not positive.
        """
        if not (sinfo and squeue and sshare):
            msg = "command names cannot be empty"
            raise ValueError(msg)
        if timeout is not None and timeout <= 0:
            msg = "timeout must be positive"
            raise ValueError(msg)

        self.sinfo = sinfo
        self.squeue = squeue
        self.sshare = sshare
        self._timeout = timeout
        self._fairshare_accounts = list(fairshare_accounts)

    def _run(self, command: list[str]) -> str:
        """Run a command and return its decoded stdout.

        Args:
            command: Executable followed by its arguments.

        Returns:
            Standard output of the command.

        Raises:
            SlurmCommandError: If the command cannot start, times out or
                exits non-zero.
        """
        start_time = time.time()
        logger.debug("Running command", command=command)

        try:
            result = subprocess.run(  # noqa: S603
                command,
                capture_output=True,
                text=True,
                timeout=self._timeout,
                check=False,
            )
        except OSError as e:
            logger.exception("Failed to start command", command=command)
            raise SlurmCommandError(command, str(e)) from e
        except subprocess.TimeoutExpired as e:
            logger.exception(
                "Command timed out",
                command=command,
                timeout_seconds=self._timeout,
            )
            msg = f"timed out after {self._timeout} seconds"
            raise SlurmCommandError(command, msg) from e

        duration = time.time() - start_time
        if result.returncode != 0:
            logger.error(
                "Command failed",
                command=command,
                returncode=result.returncode,
                stderr=result.stderr.strip(),
                duration_seconds=round(duration, 3),
            )
            raise SlurmCommandError(
                command,
                f"exited with status {result.returncode}",
                returncode=result.returncode,
                stderr=result.stderr,
            )

        logger.debug("Command completed", duration_seconds=round(duration, 3))
        return result.stdout

    def _squeue(self, state: str, output_format: str) -> str:
        return self._run(
            [self.squeue, "-a", "-r", "-h", f"-o{output_format}", f"--states={state}"],
        )

    def get_partitions(self) -> list[RawPartitionData]:
        """Fetch CPU state counts for every partition.

        Returns:
            List of partition rows from `sinfo -h -o%R,%C`.

        Raises:
            SlurmCommandError: If sinfo fails.
        """
        return parsers.parse_partitions(self._run([self.sinfo, "-h", "-o%R,%C"]))

    def get_job_partitions(self, state: str) -> list[str]:
        """Fetch the partition name of every job in the given state.

        Args:
            state: Job state filter, e.g. "RUNNING" or "PENDING".

        Returns:
            One partition name per job.

        Raises:
            SlurmCommandError: If squeue fails.
        """
        return parsers.parse_names(self._squeue(state, "%P"))

    def get_job_qos(self, state: str) -> list[str]:
        """Fetch the QoS name of every job in the given state.

        Args:
            state: Job state filter, e.g. "PENDING".

        Returns:
            One QoS name per job; jobs without a QoS are omitted.

        Raises:
            SlurmCommandError: If squeue fails.
        """
        return parsers.parse_names(self._squeue(state, "%q"))

    def get_running_qos_jobs(self) -> list[RawQosJobData]:
        """Fetch QoS and allocated CPU count of every running job.

        Returns:
            One row per running job carrying a QoS.

        Raises:
            SlurmCommandError: If squeue fails.
        """
        return parsers.parse_qos_jobs(self._squeue(JOB_STATE_RUNNING, "%q,%C"))

    def get_fairshare(self) -> list[RawFairShareData]:
        """Fetch the fair-share factor of every user/account association.

        Returns:
            Top-level rows from `sshare -n -P -o user,account,fairshare`.

        Raises:
            SlurmCommandError: If sshare fails.
        """
        command = [self.sshare, "-n", "-P", "-o", "user,account,fairshare", "-U", "-a"]
        if self._fairshare_accounts:
            command += ["-A", ",".join(self._fairshare_accounts)]
        return parsers.parse_fairshare(self._run(command))
