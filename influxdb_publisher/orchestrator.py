"""
Publication orchestrator that runs all point generators.

Generators run one after another in a fixed order. A generator that is
unavailable or has no report is skipped; one that fails contributes no
points. Nothing a generator does can stop the others or the writes.
"""

import logging
from typing import Dict, List, Optional, TextIO, Tuple

from influxdb_publisher.config import PublisherConfig
from influxdb_publisher.generators import (
    ChangeLogPointGenerator,
    CoberturaPointGenerator,
    CustomDataMapPointGenerator,
    CustomDataPointGenerator,
    JacocoPointGenerator,
    JenkinsBasePointGenerator,
    PerformancePointGenerator,
    PerfPublisherPointGenerator,
    RobotFrameworkPointGenerator,
    SonarQubePointGenerator,
)
from influxdb_publisher.models import GeneratorContext, Point
from influxdb_publisher.protocols import BuildFacade, PointGenerator
from influxdb_publisher.utils.log_sanitizer import sanitize_for_log

logger = logging.getLogger(__name__)

LOG_PREFIX = "[InfluxDB Plugin]"


class PublicationOrchestrator:
    """
    Runs every registered generator and collects their points into one batch.

    Generators are kept in registration order. The order only affects the
    readability of the build log, since all points end up in the same batch.
    """

    def __init__(self, console: Optional[TextIO] = None):
        """
        Initialize orchestrator.

        Args:
            console: Build console for progress lines
        """
        self.console = console
        self.generators: List[Tuple[PointGenerator, bool]] = []
        self._stats: Dict[str, Dict[str, int]] = {}

    @classmethod
    def for_build(
        cls,
        build: BuildFacade,
        context: GeneratorContext,
        config: PublisherConfig,
        console: Optional[TextIO] = None,
    ) -> "PublicationOrchestrator":
        """Create an orchestrator with the standard generators registered."""
        orchestrator = cls(console=console)
        orchestrator._initialize_generators(build, context, config)
        return orchestrator

    def _initialize_generators(
        self, build: BuildFacade, context: GeneratorContext, config: PublisherConfig
    ) -> None:
        """Register all generators in publication order."""
        # Basic build metadata is published for every build
        self.register_generator(
            JenkinsBasePointGenerator(
                build,
                context,
                env_parameter_field=config.jenkins_env_parameter_field,
                env_parameter_tag=config.jenkins_env_parameter_tag,
            ),
            always_run=True,
        )

        # Caller supplied data
        self.register_generator(
            CustomDataPointGenerator(build, context, config.custom_data, config.custom_data_tags)
        )
        self.register_generator(
            CustomDataMapPointGenerator(
                build, context, config.custom_data_map, config.custom_data_map_tags
            )
        )

        # Report files
        self.register_generator(CoberturaPointGenerator(build, context))
        self.register_generator(RobotFrameworkPointGenerator(build, context))
        self.register_generator(JacocoPointGenerator(build, context))
        self.register_generator(PerformancePointGenerator(build, context))

        # Remote analysis, change log, generic perf format
        self.register_generator(SonarQubePointGenerator(build, context, timeout=config.http_timeout))
        self.register_generator(ChangeLogPointGenerator(build, context))
        self.register_generator(PerfPublisherPointGenerator(build, context))

        logger.debug(f"Initialized {len(self.generators)} point generators")

    def register_generator(self, generator: PointGenerator, always_run: bool = False) -> None:
        """
        Register a generator.

        Args:
            generator: Generator instance to run
            always_run: Skip the has_report() gate for this generator

        Raises:
            ValueError: if a generator with the same name is registered
        """
        if any(existing.name == generator.name for existing, _ in self.generators):
            raise ValueError(f"Generator {generator.name} already registered")
        self.generators.append((generator, always_run))

    def _print(self, message: str) -> None:
        if self.console is not None:
            print(f"{LOG_PREFIX} {message}", file=self.console)

    def run(self) -> List[Point]:
        """
        Run all generators.

        Returns:
            Points of all generators that succeeded, in registration order
        """
        points: List[Point] = []
        self._stats = {}

        for generator, always_run in self.generators:
            stats = {"generated": 0, "skipped": 0, "failed": 0}
            self._stats[generator.name] = stats
            try:
                if not generator.is_available():
                    logger.debug(f"Plugin skipped: {generator.name}")
                    stats["skipped"] = 1
                    continue

                if not always_run and not generator.has_report():
                    logger.debug(f"Data source empty: {generator.name}")
                    stats["skipped"] = 1
                    continue

                if not always_run:
                    self._print(f"{generator.name} data found. Writing to InfluxDB...")
                generated = generator.generate()
            except Exception as e:
                stats["failed"] = 1
                self._print(f"Failed to collect data. Ignoring Exception: {e}")
                logger.warning(f"{generator.name} generator failed: {sanitize_for_log(e)}")
                continue

            points.extend(generated)
            stats["generated"] = len(generated)

        logger.info(f"Collected {len(points)} points from {len(self.generators)} generators")
        return points

    def get_stats(self) -> Dict[str, Dict[str, int]]:
        """Per-generator counts (generated/skipped/failed) of the last run."""
        return {name: dict(stats) for name, stats in self._stats.items()}
