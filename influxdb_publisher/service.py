"""
InfluxDB publication service.

Entry point used by the host build system: collect points for one build and
publish them to every configured target.
"""

import logging
from typing import List, Optional, TextIO

from influxdb_publisher.config import PublisherConfig
from influxdb_publisher.models import GeneratorContext
from influxdb_publisher.orchestrator import LOG_PREFIX, PublicationOrchestrator
from influxdb_publisher.protocols import BuildFacade
from influxdb_publisher.publisher.writer import PublishOutcome, TargetWriter
from influxdb_publisher.renderer import ProjectNameRenderer

logger = logging.getLogger(__name__)


class InfluxDbPublicationService:
    """
    Publishes the metrics of one build to InfluxDB.

    Usage:
        service = InfluxDbPublicationService(config)
        outcomes = service.perform(build, console=sys.stdout)
    """

    def __init__(self, config: PublisherConfig):
        """
        Initialize publication service.

        Args:
            config: Targets and publication options
        """
        self.config = config

    def _context(self) -> GeneratorContext:
        config = self.config
        return GeneratorContext(
            renderer=ProjectNameRenderer(config.custom_prefix, config.custom_project_name),
            timestamp=config.timestamp,
            custom_prefix=config.custom_prefix,
            measurement_name=config.measurement_name,
            replace_dash_with_underscore=config.replace_dash_with_underscore,
        )

    def perform(self, build: BuildFacade, console: Optional[TextIO] = None) -> List[PublishOutcome]:
        """
        Collect and publish the points of a build.

        Args:
            build: The build to publish
            console: Build console for progress lines

        Returns:
            One outcome per target

        Raises:
            InfluxReportError: a write failed on a target that exposes exceptions
        """
        if console is not None:
            print(f"{LOG_PREFIX} Collecting data for publication in InfluxDB...", file=console)

        orchestrator = PublicationOrchestrator.for_build(build, self._context(), self.config, console)
        points = orchestrator.run()

        writer = TargetWriter(proxy=self.config.proxy, console=console, timeout=self.config.http_timeout)
        outcomes = writer.publish_all(points, self.config.targets)

        if console is not None:
            print(f"{LOG_PREFIX} Completed.", file=console)
        logger.info(
            f"Published build {build.project_name} #{build.number}: "
            f"{len(points)} points, {len(self.config.targets)} targets"
        )
        return outcomes
