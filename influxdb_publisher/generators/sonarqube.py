"""
SonarQube generator.

Finds the dashboard link the SonarQube scanner prints at the end of a
successful analysis, derives the server's API URLs from it and fetches issue
counts per severity plus lines of code.

The generator is a small state machine:

    PENDING --has_report()--> RESOLVED (urls known) | UNAVAILABLE

Discovery and URL resolution run once, inside has_report(). generate() only
works in RESOLVED and never reads the log again.
"""

import logging
import re
from enum import Enum
from typing import List, Mapping, Optional
from urllib.parse import urlsplit

import httpx
from pydantic import BaseModel, ConfigDict

from influxdb_publisher.generators.base import BasePointGenerator
from influxdb_publisher.models import GeneratorContext, Point
from influxdb_publisher.protocols import BuildFacade
from influxdb_publisher.publisher.http import get_http_client
from influxdb_publisher.utils.log_sanitizer import sanitize_for_log

logger = logging.getLogger(__name__)

URL_PATTERN_IN_LOGS = re.compile(".*" + re.escape("ANALYSIS SUCCESSFUL, you can browse ") + "(.*)")

SONAR_ISSUES_BASE_URL = "/api/issues/search?ps=500&projectKeys="
SONAR_METRICS_BASE_URL = "/api/measures/component?metricKeys=ncloc,complexity,violations&componentKey="

SONAR_HOST_URL = "SONAR_HOST_URL"
SONAR_AUTH_TOKEN = "SONAR_AUTH_TOKEN"

SEVERITIES = ("BLOCKER", "CRITICAL", "MAJOR", "MINOR", "INFO")


class SonarQubeError(RuntimeError):
    """SonarQube data could not be resolved or fetched."""


class ResolutionState(str, Enum):
    PENDING = "pending"
    RESOLVED = "resolved"
    UNAVAILABLE = "unavailable"


class SonarUrls(BaseModel):
    """API endpoints derived from the dashboard link."""

    model_config = ConfigDict(frozen=True)

    project_key: str
    server_url: str
    issues_url: str
    metrics_url: str


def find_dashboard_url(lines) -> Optional[str]:
    """Last dashboard link announced in the console log, None if there is none."""
    url = None
    for line in lines:
        match = URL_PATTERN_IN_LOGS.fullmatch(line.rstrip("\r\n"))
        if match:
            url = match.group(1).strip()
    return url or None


def get_sonar_project_name(url: str) -> str:
    """
    Project key of a dashboard link.

    Taken from the ``id=`` query parameter; links without a query
    (``/dashboard/index/<key>``) use the last path segment.

    Raises:
        SonarQubeError: if the link cannot be parsed
    """
    try:
        parts = urlsplit(url)
    except ValueError as e:
        raise SonarQubeError(f"Malformed SonarQube link {url}: {e}") from e
    if parts.query:
        pieces = parts.query.split("id=")
    else:
        pieces = parts.path.split("/")
    return pieces[-1] if len(pieces) > 1 else ""


def get_sonar_server_url(dashboard_url: str, project_key: str) -> str:
    """
    Server base URL: everything before the dashboard path.

    Raises:
        SonarQubeError: if the link has neither known dashboard form
    """
    for marker in (f"/dashboard?id={project_key}", f"/dashboard/index/{project_key}"):
        index = dashboard_url.find(marker)
        if index > 0:
            return dashboard_url[:index]
    raise SonarQubeError(f"Cannot derive SonarQube server from {dashboard_url}")


def resolve_sonar_urls(dashboard_url: str, environment: Mapping[str, str]) -> SonarUrls:
    """
    Build the issues and metrics API URLs for a dashboard link.

    SONAR_HOST_URL from the build environment takes precedence over the
    server URL found in the link.
    """
    project_key = get_sonar_project_name(dashboard_url)
    if not project_key:
        raise SonarQubeError(f"No project key in {dashboard_url}")

    server_url = environment.get(SONAR_HOST_URL) or get_sonar_server_url(dashboard_url, project_key)
    server_url = server_url.rstrip("/")

    return SonarUrls(
        project_key=project_key,
        server_url=server_url,
        issues_url=f"{server_url}{SONAR_ISSUES_BASE_URL}{project_key}&resolved=false&severities=",
        metrics_url=f"{server_url}{SONAR_METRICS_BASE_URL}{project_key}",
    )


class SonarQubePointGenerator(BasePointGenerator):
    """Issue counts and size of the project analysed during the build."""

    name = "SonarQube"

    def __init__(
        self,
        build: BuildFacade,
        context: GeneratorContext,
        client: Optional[httpx.Client] = None,
        timeout: float = 30.0,
    ):
        super().__init__(build, context)
        self._client = client
        self.timeout = timeout
        self.state = ResolutionState.PENDING
        self.urls: Optional[SonarUrls] = None

    def _environment(self) -> Mapping[str, str]:
        try:
            return self.build.get_environment()
        except Exception as e:
            logger.debug(f"Build environment unavailable: {e}")
            return {}

    def has_report(self) -> bool:
        if self.state is ResolutionState.PENDING:
            self._resolve()
        return self.state is ResolutionState.RESOLVED

    def _resolve(self) -> None:
        try:
            dashboard_url = find_dashboard_url(self.build.iter_log_lines())
            if dashboard_url is None:
                self.state = ResolutionState.UNAVAILABLE
                return
            self.urls = resolve_sonar_urls(dashboard_url, self._environment())
            self.state = ResolutionState.RESOLVED
            logger.debug(f"SonarQube project {self.urls.project_key} on {self.urls.server_url}")
        except (OSError, ValueError, SonarQubeError) as e:
            logger.warning(f"SonarQube report not usable: {sanitize_for_log(e)}")
            self.state = ResolutionState.UNAVAILABLE

    def generate(self) -> List[Point]:
        if self.state is not ResolutionState.RESOLVED or self.urls is None:
            raise RuntimeError(f"generate() called in state {self.state.value}; call has_report() first")

        urls = self.urls
        point = self.build_point("sonarqube_data")
        point.field("display_name", self.build.display_name)
        for severity in SEVERITIES:
            point.field(f"{severity.lower()}_issues", self.get_sonar_issues(urls.issues_url, severity))
        point.field("lines_of_code", self.get_lines_of_code(urls.metrics_url))
        return [point.build()]

    @property
    def client(self) -> httpx.Client:
        return self._client if self._client is not None else get_http_client()

    def get_result(self, url: str) -> dict:
        """
        GET a SonarQube API URL and decode the JSON body.

        Raises:
            SonarQubeError: on transport errors, any status but 200, or bad JSON
        """
        auth = None
        token = self._environment().get(SONAR_AUTH_TOKEN)
        if token:
            auth = httpx.BasicAuth(token, "")

        try:
            response = self.client.get(
                url, headers={"Accept": "application/json"}, auth=auth, timeout=self.timeout
            )
        except httpx.HTTPError as e:
            raise SonarQubeError(f"Request to {url} failed: {e}") from e

        if response.status_code != 200:
            raise SonarQubeError(f"Failed : HTTP error code : {response.status_code} from URL : {url}")

        try:
            return response.json()
        except ValueError as e:
            raise SonarQubeError(f"Invalid JSON from {url}: {e}") from e

    def get_sonar_issues(self, issues_url: str, severity: str) -> int:
        data = self.get_result(issues_url + severity)
        total = data.get("total")
        if total is None:
            total = data.get("paging", {}).get("total")
        if total is None:
            raise SonarQubeError(f"No issue total for severity {severity}")
        return int(total)

    def get_lines_of_code(self, metrics_url: str) -> int:
        data = self.get_result(metrics_url)
        try:
            measures = data["component"]["measures"]
        except (KeyError, TypeError) as e:
            raise SonarQubeError(f"No measures in metrics response: {e}") from e

        lines_of_code = 0
        for measure in measures:
            if measure.get("metric") == "ncloc":
                lines_of_code = int(measure["value"])
        return lines_of_code
