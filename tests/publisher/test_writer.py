"""
Unit tests for the target writer.

Writes go to an httpx.MockTransport that records every request.
"""

import httpx
import pytest

from influxdb_publisher.config import ProxyConfiguration
from influxdb_publisher.models import Point, Target
from influxdb_publisher.publisher.line_protocol import parse_line
from influxdb_publisher.publisher.writer import (
    InfluxReportError,
    PublishStatus,
    TargetWriter,
)


class RecordingTransport(httpx.MockTransport):
    """Mock InfluxDB: answers 204, or the status configured for a host."""

    def __init__(self, failures=None):
        self.requests = []
        self.failures = failures or {}
        super().__init__(self._handle)

    def _handle(self, request):
        self.requests.append(request)
        status = self.failures.get(request.url.host, 204)
        return httpx.Response(status, text="" if status == 204 else "write failed")


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest.fixture
def batch():
    return [
        Point(measurement="jenkins_data", tags={"project_name": "p"}, fields={"build_number": 1}, timestamp=10),
        Point(measurement="cobertura_data", fields={"cobertura_line_coverage_rate": 80.5}, timestamp=10),
    ]


def make_writer(transport, console=None, proxy=None):
    return TargetWriter(proxy=proxy, console=console, client=httpx.Client(transport=transport))


class TestPublish:
    """Test writing to a single target."""

    def test_write_request(self, transport, batch):
        target = Target(url="http://influx:8086/", database="jenkins", retention_policy="weekly")

        outcome = make_writer(transport).publish(batch, target)

        assert outcome.status is PublishStatus.WRITTEN
        assert outcome.points == 2
        assert len(transport.requests) == 1
        request = transport.requests[0]
        assert request.method == "POST"
        assert request.url.path == "/write"
        assert request.url.params["db"] == "jenkins"
        assert request.url.params["rp"] == "weekly"
        assert request.url.params["consistency"] == "any"
        assert request.url.params["precision"] == "ns"
        lines = request.content.decode().split("\n")
        assert [parse_line(line) for line in lines] == batch

    def test_empty_retention_policy_left_out(self, transport, batch):
        target = Target(url="http://influx:8086", database="jenkins", retention_policy="")

        make_writer(transport).publish(batch, target)

        assert "rp" not in transport.requests[0].url.params

    def test_basic_auth(self, transport, batch):
        target = Target(url="http://influx:8086", database="db", username="writer", password="pw")

        make_writer(transport).publish(batch, target)

        assert transport.requests[0].headers["Authorization"].startswith("Basic ")

    def test_invalid_url_is_skipped(self, transport, batch, console):
        target = Target(url="influx:8086", database="db")

        outcome = make_writer(transport, console).publish(batch, target)

        assert outcome.status is PublishStatus.SKIPPED
        assert transport.requests == []
        assert "Skipping target due to invalid URL: influx:8086" in console.getvalue()

    def test_empty_batch_is_not_written(self, transport):
        outcome = make_writer(transport).publish([], Target(url="http://influx:8086", database="db"))

        assert outcome.status is PublishStatus.SKIPPED
        assert transport.requests == []

    def test_failure_not_exposed(self, batch):
        transport = RecordingTransport(failures={"influx": 500})
        target = Target(url="http://influx:8086", database="db")

        outcome = make_writer(transport).publish(batch, target)

        assert outcome.status is PublishStatus.FAILED
        assert "500" in outcome.error

    def test_failure_exposed(self, batch):
        transport = RecordingTransport(failures={"influx": 500})
        target = Target(url="http://influx:8086", database="db", expose_exceptions=True)

        with pytest.raises(InfluxReportError) as exc_info:
            make_writer(transport).publish(batch, target)

        assert isinstance(exc_info.value.__cause__, httpx.HTTPStatusError)

    def test_progress_line_hides_credentials(self, transport, batch, console):
        target = Target(description="prod", url="http://user:pw@influx:8086", database="db")

        make_writer(transport, console).publish(batch, target)

        assert "[InfluxDB Plugin] Publishing data to: prod (http://influx:8086)" in console.getvalue()
        assert "pw" not in console.getvalue()


class TestProxySelection:
    @pytest.fixture
    def proxy(self):
        return ProxyConfiguration(url="http://proxy:3128", no_proxy_hosts=("*.internal", "localhost"))

    def test_target_must_opt_in(self, proxy):
        writer = TargetWriter(proxy=proxy)

        assert writer._proxy_for(Target(url="http://influx:8086", database="db")) is None

    def test_opted_in_target_uses_proxy(self, proxy):
        writer = TargetWriter(proxy=proxy)
        target = Target(url="http://influx.example.com:8086", database="db", using_proxy=True)

        assert writer._proxy_for(target) is proxy

    def test_no_proxy_hosts_bypass(self, proxy):
        writer = TargetWriter(proxy=proxy)

        for url in ("http://db.internal:8086", "http://localhost:8086"):
            assert writer._proxy_for(Target(url=url, database="db", using_proxy=True)) is None

    def test_no_proxy_configured(self):
        target = Target(url="http://influx:8086", database="db", using_proxy=True)

        assert TargetWriter()._proxy_for(target) is None


class TestPublishAll:
    """Every target is attempted, whatever happens to the others."""

    def test_one_request_per_target(self, transport, batch):
        targets = [
            Target(url="http://influx-a:8086", database="db"),
            Target(url="http://influx-b:8086", database="db"),
        ]

        outcomes = make_writer(transport).publish_all(batch, targets)

        assert [o.status for o in outcomes] == [PublishStatus.WRITTEN, PublishStatus.WRITTEN]
        assert [r.url.host for r in transport.requests] == ["influx-a", "influx-b"]

    def test_silent_failure_continues(self, batch):
        transport = RecordingTransport(failures={"influx-a": 503})
        targets = [
            Target(url="http://influx-a:8086", database="db"),
            Target(url="http://influx-b:8086", database="db"),
        ]

        outcomes = make_writer(transport).publish_all(batch, targets)

        assert [o.status for o in outcomes] == [PublishStatus.FAILED, PublishStatus.WRITTEN]

    def test_exposed_failure_raised_after_all_targets(self, batch):
        transport = RecordingTransport(failures={"influx-a": 500})
        targets = [
            Target(url="http://influx-a:8086", database="db", expose_exceptions=True),
            Target(url="not-a-url", database="db"),
            Target(url="http://influx-b:8086", database="db"),
        ]

        with pytest.raises(InfluxReportError) as exc_info:
            make_writer(transport).publish_all(batch, targets)

        assert [r.url.host for r in transport.requests] == ["influx-a", "influx-b"]
        outcomes = exc_info.value.outcomes
        assert [o.status for o in outcomes] == [
            PublishStatus.FAILED,
            PublishStatus.SKIPPED,
            PublishStatus.WRITTEN,
        ]

    def test_first_error_wins(self, batch):
        transport = RecordingTransport(failures={"influx-a": 500, "influx-b": 400})
        targets = [
            Target(description="a", url="http://influx-a:8086", database="db", expose_exceptions=True),
            Target(description="b", url="http://influx-b:8086", database="db", expose_exceptions=True),
        ]

        with pytest.raises(InfluxReportError, match="target a"):
            make_writer(transport).publish_all(batch, targets)

        assert len(transport.requests) == 2
