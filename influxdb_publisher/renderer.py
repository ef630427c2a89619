"""Project name rendering for measurement points."""

from typing import Optional

from influxdb_publisher.protocols import BuildFacade


class ProjectNameRenderer:
    """
    Renders the project name attached to every point.

    A custom project name wins outright. Otherwise the build's project name is
    used, prefixed with ``<custom_prefix>_`` when a prefix is configured.
    """

    def __init__(self, custom_prefix: Optional[str] = None, custom_project_name: Optional[str] = None):
        self.custom_prefix = custom_prefix or ""
        self.custom_project_name = custom_project_name or ""

    def render(self, build: BuildFacade) -> str:
        if self.custom_project_name:
            return self.custom_project_name
        if self.custom_prefix:
            return f"{self.custom_prefix}_{build.project_name}"
        return build.project_name
