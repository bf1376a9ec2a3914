"""Tracked NAS metrics and the scrape meta-metrics."""

from typing import Tuple

from ..utils.metrics import MetricDefinition


NAMESPACE = "nifcloud_nas"
EXPORTER_NAME = "nifcloud_nas_exporter"

VALUE_LABELS = ("instance", "region")
META_LABELS = ("metric_name",)


def build_fq_name(namespace: str, subsystem: str, name: str) -> str:
    """Join non-empty name parts with underscores."""
    return "_".join(part for part in (namespace, subsystem, name) if part)


def _metric(name: str, suffix: str, documentation: str) -> MetricDefinition:
    return MetricDefinition(
        name=name,
        metric_name=build_fq_name(NAMESPACE, "", suffix),
        documentation=documentation,
    )


METRICS: Tuple[MetricDefinition, ...] = (
    _metric("FreeStorageSpace", "free_storage_space",
            "The amount of available storage space. Units: Bytes"),
    _metric("UsedStorageSpace", "used_storage_space",
            "The amount of used storage space. Units: Bytes"),
    _metric("ReadIOPS", "read_iops",
            "The average number of disk read I/O operations per second. Units: Count/Second"),
    _metric("WriteIOPS", "write_iops",
            "The average number of disk write I/O operations per second. Units: Count/Second"),
    _metric("ReadThroughput", "read_throughput",
            "The average number of bytes read from disk per second. Units: Bytes/Second"),
    _metric("WriteThroughput", "write_throughput",
            "The average number of bytes written to disk per second. Units: Bytes/Second"),
    _metric("ActiveConnections", "active_connections",
            "The active connection counts. Units: Count"),
    _metric("GlobalReadTraffic", "global_read_traffic",
            "The incoming (Receive) network traffic from global on the NAS instance. Units: Bytes/second"),
    _metric("PrivateReadTraffic", "private_read_traffic",
            "The incoming (Receive) network traffic from private on the NAS instance. Units: Bytes/second"),
    _metric("GlobalWriteTraffic", "global_write_traffic",
            "The outgoing (Transmit) network traffic to global on the NAS instance. Units: Bytes/second"),
    _metric("PrivateWriteTraffic", "private_write_traffic",
            "The outgoing (Transmit) network traffic to private on the NAS instance. Units: Bytes/second"),
)

METRIC_NAMES = frozenset(m.name for m in METRICS)

SCRAPE_DURATION_NAME = build_fq_name(NAMESPACE, "scrape", "collector_duration_seconds")
SCRAPE_DURATION_HELP = f"{EXPORTER_NAME}: Duration of a collector scrape."

SCRAPE_SUCCESS_NAME = build_fq_name(NAMESPACE, "scrape", "collector_success")
SCRAPE_SUCCESS_HELP = f"{EXPORTER_NAME}: Whether a collector succeeded."
