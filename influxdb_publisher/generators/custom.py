"""
Generators for caller supplied data.

Pipelines often compute values of their own. Those arrive as plain mappings
and are written as-is, without the build identity fields the report based
generators add.
"""

import logging
from typing import Dict, List, Mapping, Optional

from influxdb_publisher.generators.base import BasePointGenerator, PointBuilder
from influxdb_publisher.models import FieldValue, GeneratorContext, Point, is_writable_value
from influxdb_publisher.protocols import BuildFacade

logger = logging.getLogger(__name__)

DEFAULT_MEASUREMENT = "jenkins_custom_data"
CUSTOM_MEASUREMENT_PREFIX = "custom_"


def has_writable_values(values: Optional[Mapping[str, Optional[FieldValue]]]) -> bool:
    """True if at least one value would survive as a field."""
    return any(is_writable_value(value) for value in (values or {}).values())


class CustomDataPointGenerator(BasePointGenerator):
    """One point holding every entry of the custom data mapping as a field."""

    name = "Custom data"

    def __init__(
        self,
        build: BuildFacade,
        context: GeneratorContext,
        custom_data: Optional[Mapping[str, Optional[FieldValue]]] = None,
        custom_data_tags: Optional[Mapping[str, str]] = None,
    ):
        super().__init__(build, context)
        self.custom_data = custom_data or {}
        self.custom_data_tags = custom_data_tags or {}

    def has_report(self) -> bool:
        return has_writable_values(self.custom_data)

    def measurement(self) -> str:
        if self.context.measurement_name:
            return self.measurement_name(CUSTOM_MEASUREMENT_PREFIX + self.context.measurement_name)
        return DEFAULT_MEASUREMENT

    def generate(self) -> List[Point]:
        point = PointBuilder(self.measurement(), self.context.timestamp)
        point.add_fields(self.custom_data)
        point.tags.update(self.tag_values(self.custom_data_tags))
        return [point.build()]


class CustomDataMapPointGenerator(BasePointGenerator):
    """
    One point per named measurement.

    ``custom_data_map`` maps a measurement name to its fields; the tags for a
    measurement are looked up under the same name in ``custom_data_map_tags``.
    """

    name = "Custom data map"

    def __init__(
        self,
        build: BuildFacade,
        context: GeneratorContext,
        custom_data_map: Optional[Mapping[str, Mapping[str, Optional[FieldValue]]]] = None,
        custom_data_map_tags: Optional[Mapping[str, Mapping[str, str]]] = None,
    ):
        super().__init__(build, context)
        self.custom_data_map = custom_data_map or {}
        self.custom_data_map_tags = custom_data_map_tags or {}

    def has_report(self) -> bool:
        return any(has_writable_values(values) for values in self.custom_data_map.values())

    def generate(self) -> List[Point]:
        points: List[Point] = []
        for measurement, values in self.custom_data_map.items():
            point = PointBuilder(
                self.measurement_name(CUSTOM_MEASUREMENT_PREFIX + measurement),
                self.context.timestamp,
            )
            point.add_fields(values or {})
            if not point.fields:
                logger.debug(f"Custom data map entry {measurement} has no fields, skipping")
                continue
            tags: Dict[str, str] = self.tag_values(self.custom_data_map_tags.get(measurement))
            point.tags.update(tags)
            points.append(point.build())
        return points
