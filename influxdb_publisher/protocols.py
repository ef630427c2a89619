"""
Protocols defining contracts between the publisher and its collaborators.

The host build system and the third-party report parsers are not part of this
package. These protocols describe what the publisher expects from them, so
any object with the right shape can be handed in.
"""

from typing import Any, Iterator, List, Mapping, Optional, Protocol, Sequence, runtime_checkable

from influxdb_publisher.models import BuildResult, Point


# ============================================================================
# BUILD FACADE - read-only view of one build execution
# ============================================================================


@runtime_checkable
class BuildFacade(Protocol):
    """Read-only access to the build being published."""

    project_name: str
    project_path: str
    display_name: str
    number: int
    duration_ms: int
    start_time_ms: int
    result: Optional[BuildResult]
    agent_name: Optional[str]
    queue_time_ms: Optional[int]

    def iter_log_lines(self) -> Iterator[str]:
        """
        Iterate over the console log, oldest line first.

        Promises:
        - Forward-only; every call starts a fresh scan from the top
        - Lines carry no trailing newline
        - Raises OSError if the log cannot be read
        """
        ...

    def get_environment(self) -> Mapping[str, str]:
        """Environment variables of the build."""
        ...

    def get_parameter(self, name: str) -> Optional[str]:
        """Value of a build parameter, None if the build has no such parameter."""
        ...

    def supports_report(self, kind: str) -> bool:
        """
        Check whether a report kind can exist in this deployment.

        Promises:
        - False when the parser for that kind is not installed
        - Never raises exceptions
        """
        ...

    def get_report(self, kind: str) -> Optional[Any]:
        """Already parsed report of the given kind, None if the build produced none."""
        ...

    def get_change_set(self) -> Sequence["ChangeLogEntry"]:
        """Commits that went into this build."""
        ...


# ============================================================================
# REPORT SHAPES - what the parsers hand over
# ============================================================================


class CoberturaReport(Protocol):
    """Parsed Cobertura coverage summary. Rates are percentages."""

    package_coverage_rate: float
    class_coverage_rate: float
    line_coverage_rate: float
    branch_coverage_rate: float
    number_of_packages: int
    number_of_source_files: int
    number_of_classes: int


class CoverageCounter(Protocol):
    covered: int
    missed: int
    percentage: float


class JacocoReport(Protocol):
    """Parsed JaCoCo summary, one counter per coverage kind."""

    def get_counter(self, name: str) -> Optional[CoverageCounter]:
        """Counter for instruction, branch, complexity, line, method or class."""
        ...


class RobotTagResult(Protocol):
    name: str
    passed: int
    failed: int
    critical_passed: int
    critical_failed: int
    duration_ms: int


class RobotSuiteResult(Protocol):
    name: str
    passed: int
    failed: int
    skipped: int
    duration_ms: int


class RobotFrameworkReport(Protocol):
    """Parsed Robot Framework results."""

    passed: int
    failed: int
    skipped: int
    critical_passed: int
    critical_failed: int
    duration_ms: int
    tags: Sequence[RobotTagResult]
    suites: Sequence[RobotSuiteResult]


class PerformanceReport(Protocol):
    """Summary of one load-test report file."""

    name: str
    error_percent: float
    error_count: int
    average: float
    max: float
    min: float
    samples_count: int
    percentile_90: float
    median: float


class PerfPublisherTest(Protocol):
    name: str
    executed: bool
    successful: bool
    execution_time: Optional[float]
    message: Optional[str]


class PerfPublisherReport(Protocol):
    """Parsed report in the generic perf-publisher format."""

    number_of_tests: int
    number_of_executed_tests: int
    number_of_not_executed_tests: int
    number_of_passed_tests: int
    number_of_failed_tests: int
    best_execution_time: Optional[float]
    worst_execution_time: Optional[float]
    average_execution_time: Optional[float]
    metrics: Mapping[str, float]
    tests: Sequence[PerfPublisherTest]


class ChangeLogEntry(Protocol):
    """One commit of the build's change set."""

    author: str
    message: str
    affected_paths: Sequence[str]


# ============================================================================
# GENERATOR PROTOCOL - what the orchestrator drives
# ============================================================================


@runtime_checkable
class PointGenerator(Protocol):
    """Turns one kind of build artifact into points."""

    name: str

    def is_available(self) -> bool:
        """
        Check whether the backing capability exists in this deployment.

        Promises:
        - Cheap, never raises exceptions
        """
        ...

    def has_report(self) -> bool:
        """
        Check whether the artifact exists for this build.

        Promises:
        - Returns False when the report is absent, never raises for that case
        """
        ...

    def generate(self) -> List[Point]:
        """
        Produce points for the artifact.

        Promises:
        - Only called after has_report() returned True, except for
          generators flagged as always running
        - Never returns points without fields
        """
        ...


@runtime_checkable
class MeasurementRenderer(Protocol):
    """Maps a build to the project name used on every point."""

    def render(self, build: BuildFacade) -> str:
        ...
