"""
Publication to InfluxDB targets.

Line protocol encoding, the shared HTTP client pool and the batched writer.
"""

from influxdb_publisher.publisher.line_protocol import encode_batch, encode_point, parse_line
from influxdb_publisher.publisher.writer import (
    InfluxReportError,
    PublishOutcome,
    PublishStatus,
    TargetWriter,
)

__all__ = [
    "encode_batch",
    "encode_point",
    "parse_line",
    "InfluxReportError",
    "PublishOutcome",
    "PublishStatus",
    "TargetWriter",
]
