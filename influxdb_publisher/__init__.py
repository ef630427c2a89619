"""
InfluxDB publisher for build metrics.

Turns the results of one build (job metadata, custom data, coverage,
static analysis, load tests, change log) into InfluxDB points and writes
them as one batch to every configured target.

Usage:
    from influxdb_publisher import InfluxDbPublicationService, PublisherConfig

    config = PublisherConfig(targets=[Target(url="http://influx:8086", database="jenkins")])
    outcomes = InfluxDbPublicationService(config).perform(build, console=sys.stdout)
"""

from influxdb_publisher.config import ProxyConfiguration, PublisherConfig, load_config
from influxdb_publisher.models import BuildResult, GeneratorContext, Point, Target
from influxdb_publisher.orchestrator import PublicationOrchestrator
from influxdb_publisher.publisher import (
    InfluxReportError,
    PublishOutcome,
    PublishStatus,
    TargetWriter,
)
from influxdb_publisher.renderer import ProjectNameRenderer
from influxdb_publisher.service import InfluxDbPublicationService

__all__ = [
    # Service
    "InfluxDbPublicationService",
    "PublicationOrchestrator",
    "TargetWriter",
    # Configuration
    "PublisherConfig",
    "ProxyConfiguration",
    "load_config",
    # Models
    "Point",
    "Target",
    "BuildResult",
    "GeneratorContext",
    "ProjectNameRenderer",
    # Outcomes
    "PublishOutcome",
    "PublishStatus",
    "InfluxReportError",
]

__version__ = "1.0.0"
