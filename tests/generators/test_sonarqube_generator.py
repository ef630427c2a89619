"""
Unit tests for the SonarQube generator.

HTTP is served by httpx.MockTransport, no SonarQube server is needed.
"""

import base64

import httpx
import pytest

from influxdb_publisher.generators.sonarqube import (
    ResolutionState,
    SonarQubeError,
    SonarQubePointGenerator,
    find_dashboard_url,
    get_sonar_project_name,
    get_sonar_server_url,
    resolve_sonar_urls,
)

SCANNER_LINE = "INFO: ANALYSIS SUCCESSFUL, you can browse http://sonar:9000/dashboard?id=proj-1"


def sonar_handler(requests):
    """Answers issue searches with a per-severity total and metrics with ncloc."""
    totals = {"BLOCKER": 1, "CRITICAL": 2, "MAJOR": 3, "MINOR": 4, "INFO": 5}

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if request.url.path == "/api/issues/search":
            severity = request.url.params["severities"]
            return httpx.Response(200, json={"total": totals[severity]})
        if request.url.path == "/api/measures/component":
            return httpx.Response(
                200,
                json={
                    "component": {
                        "measures": [
                            {"metric": "complexity", "value": "77"},
                            {"metric": "ncloc", "value": "1234"},
                        ]
                    }
                },
            )
        return httpx.Response(404)

    return handler


class TestDashboardDiscovery:
    """Test locating and parsing the scanner's dashboard link."""

    def test_no_link(self):
        assert find_dashboard_url(["BUILD SUCCESS", ""]) is None

    def test_last_link_wins(self):
        lines = [
            "INFO: ANALYSIS SUCCESSFUL, you can browse http://old:9000/dashboard?id=a",
            "noise",
            "INFO: ANALYSIS SUCCESSFUL, you can browse http://new:9000/dashboard?id=b\n",
        ]

        assert find_dashboard_url(lines) == "http://new:9000/dashboard?id=b"

    def test_project_key_from_query(self):
        assert get_sonar_project_name("http://host/dashboard?id=proj-1") == "proj-1"

    def test_project_key_from_path(self):
        assert get_sonar_project_name("http://host/dashboard/index/proj-1") == "proj-1"

    def test_server_url_from_query_form(self):
        assert get_sonar_server_url("http://host/sonar/dashboard?id=proj-1", "proj-1") == "http://host/sonar"

    def test_server_url_from_index_form(self):
        assert get_sonar_server_url("http://host/dashboard/index/proj-1", "proj-1") == "http://host"

    def test_malformed_link(self):
        with pytest.raises(SonarQubeError):
            get_sonar_project_name("http://[sonar/dashboard?id=p")

    def test_server_url_unknown_form(self):
        with pytest.raises(SonarQubeError):
            get_sonar_server_url("http://host/project/proj-1", "proj-1")


class TestResolveSonarUrls:
    def test_issues_and_metrics_urls(self):
        urls = resolve_sonar_urls("http://host/dashboard?id=proj-1", {})

        assert urls.project_key == "proj-1"
        assert urls.server_url == "http://host"
        assert urls.issues_url.startswith("http://host/api/issues/search?ps=500&projectKeys=proj-1")
        assert urls.issues_url.endswith("&resolved=false&severities=")
        assert urls.metrics_url.startswith("http://host/api/measures/component?")
        assert urls.metrics_url.endswith("componentKey=proj-1")

    def test_host_override_from_environment(self):
        urls = resolve_sonar_urls(
            "http://internal/dashboard?id=proj-1", {"SONAR_HOST_URL": "https://sonar.example.com/"}
        )

        assert urls.server_url == "https://sonar.example.com"
        assert urls.issues_url.startswith("https://sonar.example.com/api/issues/search")

    def test_missing_project_key(self):
        with pytest.raises(SonarQubeError):
            resolve_sonar_urls("http://host/", {})


class TestSonarQubePointGenerator:
    """Test the resolution state machine and data fetch."""

    def test_generate_before_resolution_fails(self, build, context):
        generator = SonarQubePointGenerator(build, context)

        with pytest.raises(RuntimeError):
            generator.generate()

    def test_no_link_means_no_report(self, make_build, context):
        build = make_build(log_lines=["BUILD SUCCESS"])
        generator = SonarQubePointGenerator(build, context)

        assert generator.has_report() is False
        assert generator.state is ResolutionState.UNAVAILABLE
        with pytest.raises(RuntimeError):
            generator.generate()

    def test_unresolvable_link_means_no_report(self, make_build, context):
        build = make_build(log_lines=["ANALYSIS SUCCESSFUL, you can browse http://host/elsewhere?id=x"])
        generator = SonarQubePointGenerator(build, context)

        assert generator.has_report() is False
        assert generator.state is ResolutionState.UNAVAILABLE

    def test_malformed_link_means_no_report(self, make_build, context):
        build = make_build(log_lines=["ANALYSIS SUCCESSFUL, you can browse http://[sonar/dashboard?id=p"])
        generator = SonarQubePointGenerator(build, context)

        assert generator.has_report() is False
        assert generator.state is ResolutionState.UNAVAILABLE
        assert generator.has_report() is False
        assert build.log_reads == 1

    def test_log_is_read_once(self, make_build, context):
        build = make_build(log_lines=[SCANNER_LINE])
        requests = []
        client = httpx.Client(transport=httpx.MockTransport(sonar_handler(requests)))
        generator = SonarQubePointGenerator(build, context, client=client)

        assert generator.has_report() is True
        assert generator.has_report() is True
        generator.generate()

        assert build.log_reads == 1
        assert generator.state is ResolutionState.RESOLVED

    def test_generate_fetches_issues_and_size(self, make_build, context):
        build = make_build(log_lines=["noise", SCANNER_LINE])
        requests = []
        client = httpx.Client(transport=httpx.MockTransport(sonar_handler(requests)))
        generator = SonarQubePointGenerator(build, context, client=client)

        assert generator.has_report()
        points = generator.generate()

        assert len(points) == 1
        point = points[0]
        assert point.measurement == "sonarqube_data"
        assert point.fields["display_name"] == "#42"
        assert point.fields["blocker_issues"] == 1
        assert point.fields["critical_issues"] == 2
        assert point.fields["major_issues"] == 3
        assert point.fields["minor_issues"] == 4
        assert point.fields["info_issues"] == 5
        assert point.fields["lines_of_code"] == 1234
        assert len(requests) == 6
        assert all(r.headers["Accept"] == "application/json" for r in requests)
        assert "Authorization" not in requests[0].headers

    def test_auth_token_is_sent(self, make_build, context):
        build = make_build(log_lines=[SCANNER_LINE], environment={"SONAR_AUTH_TOKEN": "squ_token"})
        requests = []
        client = httpx.Client(transport=httpx.MockTransport(sonar_handler(requests)))
        generator = SonarQubePointGenerator(build, context, client=client)

        generator.has_report()
        generator.generate()

        expected = "Basic " + base64.b64encode(b"squ_token:").decode("ascii")
        assert requests[0].headers["Authorization"] == expected

    def test_paging_total_fallback(self, make_build, context):
        build = make_build(log_lines=[SCANNER_LINE])
        client = httpx.Client(
            transport=httpx.MockTransport(lambda request: httpx.Response(200, json={"paging": {"total": 9}}))
        )
        generator = SonarQubePointGenerator(build, context, client=client)

        assert generator.get_sonar_issues("http://sonar:9000/api/issues/search?severities=", "MAJOR") == 9

    def test_non_200_raises(self, make_build, context):
        build = make_build(log_lines=[SCANNER_LINE])
        client = httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(401)))
        generator = SonarQubePointGenerator(build, context, client=client)

        assert generator.has_report() is True
        with pytest.raises(SonarQubeError, match="HTTP error code : 401"):
            generator.generate()

    def test_transport_error_raises(self, make_build, context):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        build = make_build(log_lines=[SCANNER_LINE])
        client = httpx.Client(transport=httpx.MockTransport(handler))
        generator = SonarQubePointGenerator(build, context, client=client)

        generator.has_report()
        with pytest.raises(SonarQubeError):
            generator.generate()

    def test_invalid_json_raises(self, make_build, context):
        build = make_build(log_lines=[SCANNER_LINE])
        client = httpx.Client(
            transport=httpx.MockTransport(lambda request: httpx.Response(200, content=b"<html>"))
        )
        generator = SonarQubePointGenerator(build, context, client=client)

        with pytest.raises(SonarQubeError):
            generator.get_result("http://sonar:9000/api/measures/component")
