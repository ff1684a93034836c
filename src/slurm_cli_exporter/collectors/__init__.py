"""Collectors package for SLURM metrics.

Contains collector implementations for partitions, QoS and fair-share. Each
collector module provides fetch, describe_metrics and generate_metrics
functions that can be composed with the SlurmCollector class.
"""
