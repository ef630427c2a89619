"""
Basic build metadata generator.

Always runs: every published build gets one point with its duration, number
and result, plus any tags/fields the caller derives from build parameters.
"""

import logging
from typing import Dict, List, Mapping, Optional

from influxdb_publisher.generators.base import BasePointGenerator
from influxdb_publisher.models import GeneratorContext, Point
from influxdb_publisher.protocols import BuildFacade

logger = logging.getLogger(__name__)

DEFAULT_MEASUREMENT = "jenkins_data"

BUILD_DISPLAY_NAME = "build_display_name"
BUILD_TIME = "build_time"
BUILD_SCHEDULED_TIME = "build_scheduled_time"
BUILD_EXEC_TIME = "build_exec_time"
BUILD_RESULT = "build_result"
BUILD_RESULT_ORDINAL = "build_result_ordinal"
BUILD_SUCCESSFUL = "build_successful"
BUILD_AGENT_NAME = "build_agent_name"
TIME_IN_QUEUE = "time_in_queue"

ENV_MARKER = "$"


def resolve_env_parameter(value: str, environment: Mapping[str, str]) -> str:
    """
    Resolve one configured parameter value.

    Values starting with ``$`` name an environment variable of the build
    (missing variables resolve to ""). Anything else is taken literally.
    """
    if value.startswith(ENV_MARKER):
        return environment.get(value[len(ENV_MARKER):], "")
    return value


def parse_parameter_lines(
    text: Optional[str], build: BuildFacade, environment: Mapping[str, str]
) -> Dict[str, str]:
    """
    Turn newline separated ``KEY=VALUE`` lines into a resolved mapping.

    A line without ``=`` names a build parameter and takes its value; unset
    parameters are left out.
    """
    resolved: Dict[str, str] = {}
    if not text:
        return resolved

    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line:
            continue
        if "=" in line:
            key, value = line.split("=", 1)
            key = key.strip()
            if key:
                resolved[key] = resolve_env_parameter(value.strip(), environment)
        else:
            parameter = build.get_parameter(line)
            if parameter is not None:
                resolved[line] = parameter
    return resolved


class JenkinsBasePointGenerator(BasePointGenerator):
    """Generates the per-build metadata point."""

    name = "Jenkins"

    def __init__(
        self,
        build: BuildFacade,
        context: GeneratorContext,
        env_parameter_field: Optional[str] = None,
        env_parameter_tag: Optional[str] = None,
    ):
        super().__init__(build, context)
        self.env_parameter_field = env_parameter_field
        self.env_parameter_tag = env_parameter_tag

    def has_report(self) -> bool:
        return True

    def generate(self) -> List[Point]:
        build = self.build
        result = build.result

        point = self.build_point(self.context.measurement_name or DEFAULT_MEASUREMENT)
        point.field(BUILD_DISPLAY_NAME, build.display_name)
        point.field(BUILD_TIME, build.duration_ms)
        point.field(BUILD_SCHEDULED_TIME, build.start_time_ms)
        point.field(BUILD_EXEC_TIME, build.start_time_ms + build.duration_ms)
        if result is not None:
            point.field(BUILD_RESULT, result.value)
            point.field(BUILD_RESULT_ORDINAL, result.ordinal)
            point.field(BUILD_SUCCESSFUL, result.is_successful)
        point.field(BUILD_AGENT_NAME, build.agent_name)
        point.field(TIME_IN_QUEUE, build.queue_time_ms)

        if self.env_parameter_field or self.env_parameter_tag:
            environment = build.get_environment()
            fields = parse_parameter_lines(self.env_parameter_field, build, environment)
            tags = parse_parameter_lines(self.env_parameter_tag, build, environment)
            point.add_fields(fields)
            for key, value in tags.items():
                point.tag(key, self.measure_name(value))
            logger.debug(f"Build point extended with {len(fields)} parameter fields, {len(tags)} tags")

        return [point.build()]
