"""Change log generator: what went into the build and who wrote it."""

from typing import List

from influxdb_publisher.generators.base import BasePointGenerator
from influxdb_publisher.models import Point


class ChangeLogPointGenerator(BasePointGenerator):
    name = "Git ChangeLog"

    def has_report(self) -> bool:
        return len(self.build.get_change_set()) > 0

    def generate(self) -> List[Point]:
        entries = list(self.build.get_change_set())

        messages = [entry.message.strip() for entry in entries]
        culprits = sorted({entry.author for entry in entries if entry.author})
        paths: List[str] = []
        for entry in entries:
            for path in entry.affected_paths:
                if path not in paths:
                    paths.append(path)

        point = self.build_point("changelog_data")
        point.add_fields(
            {
                "commit_messages": "; ".join(messages),
                "culprits": ", ".join(culprits),
                "affected_paths": ", ".join(paths),
                "commit_count": len(entries),
            }
        )
        return [point.build()]
