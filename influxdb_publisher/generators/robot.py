"""
Robot Framework results generator.

Emits an overall summary point plus one point per tag and one per suite,
so dashboards can drill down without re-parsing output.xml.
"""

from typing import List, Optional

from influxdb_publisher.generators.base import BasePointGenerator
from influxdb_publisher.models import Point

RF_NAME = "rf_name"
RF_TAG_NAME = "rf_tag_name"
RF_SUITE_NAME = "rf_suite_name"


def pass_percentage(passed: int, total: int) -> Optional[float]:
    if total <= 0:
        return None
    return round(100.0 * passed / total, 2)


class RobotFrameworkPointGenerator(BasePointGenerator):
    name = "Robot Framework"
    REPORT_KIND = "robot"

    def has_report(self) -> bool:
        return self.get_report() is not None

    def generate(self) -> List[Point]:
        report = self.get_report()
        points = [self._summary_point(report)]
        points.extend(self._tag_point(tag) for tag in report.tags)
        points.extend(self._suite_point(suite) for suite in report.suites)
        return points

    def _summary_point(self, report) -> Point:
        total = report.passed + report.failed + report.skipped
        critical_total = report.critical_passed + report.critical_failed

        point = self.build_point("rf_results")
        point.add_fields(
            {
                "rf_failed": report.failed,
                "rf_passed": report.passed,
                "rf_skipped": report.skipped,
                "rf_total": total,
                "rf_critical_failed": report.critical_failed,
                "rf_critical_passed": report.critical_passed,
                "rf_critical_total": critical_total,
                "rf_pass_percentage": pass_percentage(report.passed, total),
                "rf_critical_pass_percentage": pass_percentage(
                    report.critical_passed, critical_total
                ),
                "rf_duration": report.duration_ms,
                "rf_suites": len(report.suites),
            }
        )
        return point.build()

    def _tag_point(self, tag) -> Point:
        point = self.build_point("rf_tag_point")
        point.tag(RF_TAG_NAME, self.measure_name(tag.name))
        point.add_fields(
            {
                RF_TAG_NAME: tag.name,
                "rf_passed": tag.passed,
                "rf_failed": tag.failed,
                "rf_critical_passed": tag.critical_passed,
                "rf_critical_failed": tag.critical_failed,
                "rf_duration": tag.duration_ms,
            }
        )
        return point.build()

    def _suite_point(self, suite) -> Point:
        total = suite.passed + suite.failed + suite.skipped

        point = self.build_point("rf_suite_point")
        point.tag(RF_SUITE_NAME, self.measure_name(suite.name))
        point.add_fields(
            {
                RF_SUITE_NAME: suite.name,
                "rf_testcases": total,
                "rf_passed": suite.passed,
                "rf_failed": suite.failed,
                "rf_skipped": suite.skipped,
                "rf_duration": suite.duration_ms,
            }
        )
        return point.build()
