"""
Performance report generators.

PerformancePointGenerator handles load-test summaries (one point per report
file). PerfPublisherPointGenerator handles the generic perf-publisher format
with its summary, metric and per-test points.
"""

from typing import List

from influxdb_publisher.generators.base import BasePointGenerator
from influxdb_publisher.models import Point

PERFORMANCE_REPORT = "performance_report"
METRIC_NAME = "metric_name"
TEST_NAME = "test_name"


class PerformancePointGenerator(BasePointGenerator):
    """One point per load-test report of the build."""

    name = "Performance"
    REPORT_KIND = "performance"

    def has_report(self) -> bool:
        reports = self.get_report()
        return bool(reports)

    def generate(self) -> List[Point]:
        points: List[Point] = []
        for report in self.get_report():
            point = self.build_point("performance_data")
            point.tag(PERFORMANCE_REPORT, self.measure_name(report.name))
            point.add_fields(
                {
                    "error_percent": float(report.error_percent),
                    "error_count": int(report.error_count),
                    "average": float(report.average),
                    "max": float(report.max),
                    "min": float(report.min),
                    "total": int(report.samples_count),
                    "90Percentile": float(report.percentile_90),
                    "median": float(report.median),
                }
            )
            points.append(point.build())
        return points


class PerfPublisherPointGenerator(BasePointGenerator):
    name = "Performance Publisher"
    REPORT_KIND = "perfpublisher"

    def has_report(self) -> bool:
        return self.get_report() is not None

    def generate(self) -> List[Point]:
        report = self.get_report()

        summary = self.build_point("perfpublisher_summary")
        summary.add_fields(
            {
                "number_of_tests": report.number_of_tests,
                "number_of_executed_tests": report.number_of_executed_tests,
                "number_of_not_executed_tests": report.number_of_not_executed_tests,
                "number_of_passed_tests": report.number_of_passed_tests,
                "number_of_failed_tests": report.number_of_failed_tests,
                "best_execution_time_test_value": report.best_execution_time,
                "worst_execution_time_test_value": report.worst_execution_time,
                "average_execution_time": report.average_execution_time,
            }
        )
        points = [summary.build()]

        for metric_name, value in report.metrics.items():
            point = self.build_point("perfpublisher_metric")
            point.tag(METRIC_NAME, self.measure_name(metric_name))
            point.field("value", float(value))
            points.append(point.build())

        for test in report.tests:
            point = self.build_point("perfpublisher_test")
            point.tag(TEST_NAME, self.measure_name(test.name))
            point.add_fields(
                {
                    "test_name": test.name,
                    "executed": bool(test.executed),
                    "successful": bool(test.successful),
                    "execution_time": test.execution_time,
                    "message": test.message,
                }
            )
            points.append(point.build())

        return points
