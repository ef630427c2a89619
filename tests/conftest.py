"""
Pytest configuration and fixtures for influxdb_publisher tests.
"""

import io
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import pytest

from influxdb_publisher.models import BuildResult, GeneratorContext
from influxdb_publisher.publisher.http import close_http_clients
from influxdb_publisher.renderer import ProjectNameRenderer

TIMESTAMP = 1_700_000_000_000_000_000


@dataclass
class FakeChange:
    author: str
    message: str
    affected_paths: List[str] = field(default_factory=list)


@dataclass
class FakeBuild:
    """In-memory build facade."""

    project_name: str = "my-project"
    project_path: str = "folder/my-project"
    display_name: str = "#42"
    number: int = 42
    duration_ms: int = 120_000
    start_time_ms: int = 1_700_000_000_000
    result: Optional[BuildResult] = BuildResult.SUCCESS
    agent_name: Optional[str] = "agent-1"
    queue_time_ms: Optional[int] = 1500
    log_lines: List[str] = field(default_factory=list)
    environment: Dict[str, str] = field(default_factory=dict)
    parameters: Dict[str, str] = field(default_factory=dict)
    reports: Dict[str, Any] = field(default_factory=dict)
    supported_reports: Optional[set] = None
    changes: List[FakeChange] = field(default_factory=list)
    log_reads: int = 0

    def iter_log_lines(self):
        self.log_reads += 1
        return iter(self.log_lines)

    def get_environment(self):
        return self.environment

    def get_parameter(self, name):
        return self.parameters.get(name)

    def supports_report(self, kind):
        if self.supported_reports is None:
            return True
        return kind in self.supported_reports

    def get_report(self, kind):
        return self.reports.get(kind)

    def get_change_set(self):
        return self.changes


def _make_context(custom_prefix=None, custom_project_name=None, **overrides) -> GeneratorContext:
    return GeneratorContext(
        renderer=ProjectNameRenderer(custom_prefix, custom_project_name),
        timestamp=overrides.pop("timestamp", TIMESTAMP),
        custom_prefix=custom_prefix,
        **overrides,
    )


@pytest.fixture
def make_build():
    """Factory for fake builds."""
    return FakeBuild


@pytest.fixture
def make_change():
    """Factory for change log entries."""
    return FakeChange


@pytest.fixture
def make_context():
    """Factory for generator contexts."""
    return _make_context


@pytest.fixture
def build():
    """Fresh fake build."""
    return FakeBuild()


@pytest.fixture
def context():
    """Generator context with defaults."""
    return _make_context()


@pytest.fixture
def console():
    """Captures build console output."""
    return io.StringIO()


@pytest.fixture(autouse=True)
def reset_http_clients():
    """Shared HTTP clients must not leak between tests."""
    yield
    close_http_clients()
