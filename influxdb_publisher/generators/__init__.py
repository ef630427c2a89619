"""
Point generator implementations.

Each generator turns one kind of build artifact into points.
"""

from influxdb_publisher.generators.base import BasePointGenerator, PointBuilder
from influxdb_publisher.generators.build import JenkinsBasePointGenerator, resolve_env_parameter
from influxdb_publisher.generators.changelog import ChangeLogPointGenerator
from influxdb_publisher.generators.coverage import CoberturaPointGenerator, JacocoPointGenerator
from influxdb_publisher.generators.custom import (
    CustomDataMapPointGenerator,
    CustomDataPointGenerator,
)
from influxdb_publisher.generators.performance import (
    PerformancePointGenerator,
    PerfPublisherPointGenerator,
)
from influxdb_publisher.generators.robot import RobotFrameworkPointGenerator
from influxdb_publisher.generators.sonarqube import SonarQubeError, SonarQubePointGenerator

__all__ = [
    "BasePointGenerator",
    "PointBuilder",
    "JenkinsBasePointGenerator",
    "resolve_env_parameter",
    "CustomDataPointGenerator",
    "CustomDataMapPointGenerator",
    "CoberturaPointGenerator",
    "RobotFrameworkPointGenerator",
    "JacocoPointGenerator",
    "PerformancePointGenerator",
    "SonarQubePointGenerator",
    "SonarQubeError",
    "ChangeLogPointGenerator",
    "PerfPublisherPointGenerator",
]
