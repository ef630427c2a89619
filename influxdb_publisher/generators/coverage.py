"""Coverage report generators (Cobertura, JaCoCo)."""

from typing import List

from influxdb_publisher.generators.base import BasePointGenerator
from influxdb_publisher.models import Point


class CoberturaPointGenerator(BasePointGenerator):
    """Coverage rates and project size from a Cobertura report."""

    name = "Cobertura"
    REPORT_KIND = "cobertura"

    def has_report(self) -> bool:
        return self.get_report() is not None

    def generate(self) -> List[Point]:
        report = self.get_report()
        point = self.build_point("cobertura_data")
        point.add_fields(
            {
                "cobertura_package_coverage_rate": float(report.package_coverage_rate),
                "cobertura_class_coverage_rate": float(report.class_coverage_rate),
                "cobertura_line_coverage_rate": float(report.line_coverage_rate),
                "cobertura_branch_coverage_rate": float(report.branch_coverage_rate),
                "cobertura_number_of_packages": int(report.number_of_packages),
                "cobertura_number_of_source_files": int(report.number_of_source_files),
                "cobertura_number_of_classes": int(report.number_of_classes),
            }
        )
        return [point.build()]


JACOCO_COUNTERS = ("instruction", "branch", "complexity", "line", "method", "class")


class JacocoPointGenerator(BasePointGenerator):
    """Per-counter coverage from a JaCoCo report."""

    name = "JaCoCo"
    REPORT_KIND = "jacoco"

    def has_report(self) -> bool:
        return self.get_report() is not None

    def generate(self) -> List[Point]:
        report = self.get_report()
        point = self.build_point("jacoco_data")
        for counter_name in JACOCO_COUNTERS:
            counter = report.get_counter(counter_name)
            if counter is None:
                continue
            point.field(f"jacoco_{counter_name}_coverage_rate", float(counter.percentage))
            point.field(f"jacoco_{counter_name}_covered", int(counter.covered))
            point.field(f"jacoco_{counter_name}_missed", int(counter.missed))
        return [point.build()]
