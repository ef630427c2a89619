"""
Data models for the InfluxDB publisher.

Points are produced by generators and consumed by the target writer.
Targets are resolved by the configuration layer and only read here.
"""

import math
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Optional, Union

import httpx
from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator

from influxdb_publisher.utils.log_sanitizer import redact_url

FieldValue = Union[bool, int, float, str]


def is_writable_value(value: Optional[FieldValue]) -> bool:
    """False for None and for NaN/infinite floats, which InfluxDB cannot store."""
    if value is None:
        return False
    if isinstance(value, float):
        return math.isfinite(value)
    return True


class Point(BaseModel):
    """
    One time-series sample: measurement, tags, fields, timestamp.

    Tags and fields are exposed as read-only mappings.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    measurement: str = Field(min_length=1, description="Rendered series name")
    tags: Mapping[str, str] = Field(default_factory=dict, description="Indexed dimensions")
    fields: Mapping[str, FieldValue] = Field(description="Scalar payload values")
    timestamp: int = Field(ge=0, description="Epoch time in nanoseconds")

    @field_validator("tags")
    @classmethod
    def freeze_tags(cls, value: Mapping[str, str]) -> Mapping[str, str]:
        return MappingProxyType(dict(value))

    @field_validator("fields")
    @classmethod
    def check_fields(cls, value: Mapping[str, FieldValue]) -> Mapping[str, FieldValue]:
        # The line protocol rejects points without fields, NaN and infinity
        if not value:
            raise ValueError("a point needs at least one field")
        for key, field_value in value.items():
            if not is_writable_value(field_value):
                raise ValueError(f"field {key} has unwritable value {field_value!r}")
        return MappingProxyType(dict(value))

    def to_line(self) -> str:
        """Render this point as one line of the InfluxDB line protocol."""
        from influxdb_publisher.publisher.line_protocol import encode_point

        return encode_point(self)


class Target(BaseModel):
    """A configured InfluxDB endpoint."""

    description: str = Field("", description="Human readable name of the target")
    url: str = Field(..., description="Base URL of the InfluxDB HTTP API")
    database: str = Field(..., min_length=1, description="Database to write into")
    retention_policy: str = Field("autogen", description="Retention policy for the writes")
    username: Optional[str] = Field(None, description="Username for basic auth, if any")
    password: Optional[SecretStr] = Field(None, description="Password for basic auth")
    using_proxy: bool = Field(False, description="Route writes through the configured proxy")
    expose_exceptions: bool = Field(
        False, description="Raise InfluxReportError instead of logging write failures"
    )

    @property
    def has_credentials(self) -> bool:
        return bool(self.username)

    def password_value(self) -> str:
        return self.password.get_secret_value() if self.password else ""

    def safe_url(self) -> str:
        """URL without any embedded user info."""
        return redact_url(self.url)

    def __str__(self) -> str:
        if self.description:
            return f"{self.description} ({self.safe_url()})"
        return self.safe_url()


class GeneratorContext(BaseModel):
    """
    Run options shared by every generator of one publication run.

    Holds the renderer plus the caller supplied scalars. Immutable so that
    generators never share mutable state.
    """

    model_config = ConfigDict(frozen=True)

    renderer: Any = Field(..., description="MeasurementRenderer for project names")
    timestamp: int = Field(..., ge=0, description="Epoch nanoseconds for all points of the run")
    custom_prefix: Optional[str] = None
    measurement_name: Optional[str] = None
    replace_dash_with_underscore: bool = False


def is_valid_http_url(url: Optional[str]) -> bool:
    """True if url is an absolute http(s) URL with a host."""
    if not url:
        return False
    try:
        parsed = httpx.URL(url)
    except (httpx.InvalidURL, TypeError, ValueError):
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.host)


class BuildResult(str, Enum):
    """Final build status as reported by the host build system."""

    SUCCESS = "SUCCESS"
    UNSTABLE = "UNSTABLE"
    FAILURE = "FAILURE"
    NOT_BUILT = "NOT_BUILT"
    ABORTED = "ABORTED"

    @property
    def ordinal(self) -> int:
        return list(BuildResult).index(self)

    @property
    def is_successful(self) -> bool:
        return self is BuildResult.SUCCESS
