"""Slurm CLI Prometheus Exporter.

Prometheus exporter for SLURM workload manager that collects per-partition,
per-QoS and per-user fair-share metrics by parsing the output of the sinfo,
squeue and sshare command-line tools.
"""

__version__ = "0.1.0"
