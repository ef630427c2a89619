"""
Base class for point generators.

Every generator inherits from BasePointGenerator, which carries the run
context and the shared point builder. This keeps tag naming, dash handling
and timestamps identical across all measurements.
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Mapping, Optional
import logging

from influxdb_publisher.models import FieldValue, GeneratorContext, Point, is_writable_value
from influxdb_publisher.protocols import BuildFacade

logger = logging.getLogger(__name__)

PROJECT_NAME = "project_name"
PROJECT_PATH = "project_path"
BUILD_NUMBER = "build_number"
CUSTOM_PREFIX = "prefix"


class PointBuilder:
    """
    Mutable accumulator for one point.

    Fields set to None are dropped, so optional report values never end up
    on the wire. NaN and infinite floats are dropped as well; InfluxDB cannot
    store them and one of them would fail the whole write.
    """

    def __init__(self, measurement: str, timestamp: int):
        self.measurement = measurement
        self.timestamp = timestamp
        self.tags: Dict[str, str] = {}
        self.fields: Dict[str, FieldValue] = {}

    def tag(self, key: str, value: Optional[str]) -> "PointBuilder":
        if value is not None:
            self.tags[key] = value
        return self

    def field(self, key: str, value: Optional[FieldValue]) -> "PointBuilder":
        if is_writable_value(value):
            self.fields[key] = value
        elif value is not None:
            logger.debug(f"Dropping field {key} of {self.measurement}: {value!r} cannot be written")
        return self

    def add_fields(self, values: Mapping[str, Optional[FieldValue]]) -> "PointBuilder":
        for key, value in values.items():
            self.field(key, value)
        return self

    def build(self) -> Point:
        return Point(
            measurement=self.measurement,
            tags=dict(self.tags),
            fields=dict(self.fields),
            timestamp=self.timestamp,
        )


class BasePointGenerator(ABC):
    """
    Abstract base class for all point generators.

    Subclasses implement has_report() and generate(). Generators backed by a
    parsed report set REPORT_KIND so that is_available() can ask the build
    whether that report type exists in this deployment at all.
    """

    name: str = "generator"
    REPORT_KIND: Optional[str] = None

    def __init__(self, build: BuildFacade, context: GeneratorContext):
        """
        Initialize generator.

        Args:
            build: Build facade to read from
            context: Run options shared by all generators
        """
        self.build = build
        self.context = context

    def is_available(self) -> bool:
        """Report-backed generators are available only if the build supports the report kind."""
        if self.REPORT_KIND is None:
            return True
        try:
            return bool(self.build.supports_report(self.REPORT_KIND))
        except Exception as e:
            logger.debug(f"{self.name}: capability check failed: {e}")
            return False

    @abstractmethod
    def has_report(self) -> bool:
        """
        Check if there is data to publish for this build.

        Promises:
        - Returns False when the report is absent
        """
        pass

    @abstractmethod
    def generate(self) -> List[Point]:
        """Produce the points for this generator."""
        pass

    def get_report(self):
        """Parsed report of REPORT_KIND, or None."""
        if self.REPORT_KIND is None:
            return None
        return self.build.get_report(self.REPORT_KIND)

    def measure_name(self, value: str) -> str:
        """Tag value as written; dashes become underscores when configured."""
        if self.context.replace_dash_with_underscore:
            return value.replace("-", "_")
        return value

    @staticmethod
    def measurement_name(measurement: str) -> str:
        # InfluxDB discourages "-" in measurement names
        return measurement.replace("-", "_")

    def build_point(self, measurement: str) -> PointBuilder:
        """
        Start a point with the tags and fields every measurement shares.

        Args:
            measurement: Measurement name before dash replacement

        Returns:
            Builder pre-filled with project and build identity
        """
        project_name = self.context.renderer.render(self.build)
        project_path = self.build.project_path

        builder = PointBuilder(self.measurement_name(measurement), self.context.timestamp)
        builder.field(PROJECT_NAME, project_name)
        builder.field(PROJECT_PATH, project_path)
        builder.field(BUILD_NUMBER, self.build.number)

        if self.context.custom_prefix:
            builder.tag(CUSTOM_PREFIX, self.measure_name(self.context.custom_prefix))
        builder.tag(PROJECT_NAME, self.measure_name(project_name))
        builder.tag(PROJECT_PATH, self.measure_name(project_path))
        return builder

    def tag_values(self, tags: Optional[Mapping[str, object]]) -> Dict[str, str]:
        """Stringify and sanitize a caller supplied tag mapping."""
        if not tags:
            return {}
        return {key: self.measure_name(str(value)) for key, value in tags.items() if value is not None}

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"
