"""
Configuration for the InfluxDB publisher.

The target list and publication options normally come from the host build
system. For standalone use they can also be loaded from a YAML file, with
proxy settings falling back to environment variables.
"""

import os
import time
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, SecretStr

from influxdb_publisher.models import FieldValue, Target


class ProxyConfiguration(BaseModel):
    """Process-wide outbound proxy settings."""

    model_config = ConfigDict(frozen=True)

    url: str = Field(..., description="Proxy URL, e.g. http://proxy.example.com:3128")
    username: Optional[str] = Field(None, description="Proxy user, if the proxy needs auth")
    password: Optional[SecretStr] = Field(None, description="Proxy password")
    no_proxy_hosts: Tuple[str, ...] = Field(
        default_factory=tuple, description="Hosts (or *.suffix patterns) that bypass the proxy"
    )

    @classmethod
    def from_env(cls) -> Optional["ProxyConfiguration"]:
        """Create config from environment variables, None if no proxy is set."""
        url = os.getenv("INFLUXDB_PROXY_URL", "")
        if not url:
            return None
        no_proxy = os.getenv("INFLUXDB_NO_PROXY_HOSTS", "")
        password = os.getenv("INFLUXDB_PROXY_PASSWORD")
        return cls(
            url=url,
            username=os.getenv("INFLUXDB_PROXY_USER") or None,
            password=SecretStr(password) if password else None,
            no_proxy_hosts=tuple(host.strip() for host in no_proxy.split(",") if host.strip()),
        )

    @property
    def has_credentials(self) -> bool:
        return self.username is not None

    def password_value(self) -> str:
        return self.password.get_secret_value() if self.password else ""

    def applies_to(self, host: str) -> bool:
        """False if host matches one of the no-proxy patterns."""
        host = host.lower()
        for pattern in self.no_proxy_hosts:
            pattern = pattern.lower()
            if pattern.startswith("*."):
                if host.endswith(pattern[1:]):
                    return False
            elif host == pattern:
                return False
        return True


def current_timestamp_ns() -> int:
    return time.time_ns()


class PublisherConfig(BaseModel):
    """Everything one publication run needs besides the build itself."""

    targets: List[Target] = Field(default_factory=list)
    custom_project_name: Optional[str] = Field(None, description="Overrides the project name")
    custom_prefix: Optional[str] = Field(None, description="Prefix for the project name")
    custom_data: Dict[str, Optional[FieldValue]] = Field(default_factory=dict)
    custom_data_tags: Dict[str, str] = Field(default_factory=dict)
    custom_data_map: Dict[str, Dict[str, Optional[FieldValue]]] = Field(default_factory=dict)
    custom_data_map_tags: Dict[str, Dict[str, str]] = Field(default_factory=dict)
    jenkins_env_parameter_field: Optional[str] = Field(
        None, description="KEY=VALUE lines added as fields to the build point"
    )
    jenkins_env_parameter_tag: Optional[str] = Field(
        None, description="KEY=VALUE lines added as tags to the build point"
    )
    measurement_name: Optional[str] = Field(
        None, description="Overrides the default measurement name of the build point"
    )
    replace_dash_with_underscore: bool = False
    timestamp: int = Field(default_factory=current_timestamp_ns, ge=0)
    proxy: Optional[ProxyConfiguration] = None
    http_timeout: float = Field(30.0, gt=0, description="Seconds per HTTP request")


def load_config(path: Union[str, Path]) -> PublisherConfig:
    """
    Load publisher configuration from a YAML file.

    Args:
        path: YAML file with the PublisherConfig keys

    Returns:
        Validated configuration. Without a ``proxy`` section the proxy is
        read from INFLUXDB_PROXY_* environment variables.
    """
    with open(path, "r") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ValueError(f"Configuration file {path} must contain a mapping")

    config = PublisherConfig(**data)
    if config.proxy is None:
        config = config.model_copy(update={"proxy": ProxyConfiguration.from_env()})
    return config
