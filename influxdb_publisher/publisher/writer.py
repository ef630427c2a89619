"""
Batched writes to InfluxDB targets.

Each target gets the whole batch in a single write request. Whether a failed
write fails the build is decided per target by ``expose_exceptions``; either
way the remaining targets are still written.
"""

import logging
from enum import Enum
from typing import List, Optional, Sequence, TextIO

import httpx
from pydantic import BaseModel, Field

from influxdb_publisher.config import ProxyConfiguration
from influxdb_publisher.logging_config import log_write_outcome
from influxdb_publisher.models import Point, Target, is_valid_http_url
from influxdb_publisher.publisher.http import InfluxAuth, get_http_client
from influxdb_publisher.publisher.line_protocol import encode_batch
from influxdb_publisher.utils.log_sanitizer import sanitize_for_log

logger = logging.getLogger(__name__)

LOG_PREFIX = "[InfluxDB Plugin]"

# At least one node has to acknowledge the write
CONSISTENCY_LEVEL = "any"
TIMESTAMP_PRECISION = "ns"


class InfluxReportError(RuntimeError):
    """Raised when a write fails on a target configured to expose exceptions."""

    def __init__(self, message: str, outcomes: Optional[List["PublishOutcome"]] = None):
        super().__init__(message)
        self.outcomes = outcomes or []


class PublishStatus(str, Enum):
    WRITTEN = "written"
    SKIPPED = "skipped"
    FAILED = "failed"


class PublishOutcome(BaseModel):
    """Result of publishing one batch to one target."""

    target: str = Field(..., description="Target as shown in logs (no credentials)")
    status: PublishStatus
    points: int = Field(0, ge=0, description="Points sent in the write")
    error: Optional[str] = None


class TargetWriter:
    """Writes a point batch to InfluxDB targets."""

    def __init__(
        self,
        proxy: Optional[ProxyConfiguration] = None,
        console: Optional[TextIO] = None,
        timeout: float = 30.0,
        client: Optional[httpx.Client] = None,
    ):
        """
        Initialize the writer.

        Args:
            proxy: Process-wide proxy, used only for targets that opt in
            console: Build console for progress lines
            timeout: Seconds allowed per write request
            client: Client to use instead of the shared pool
        """
        self.proxy = proxy
        self.console = console
        self.timeout = timeout
        self._client = client

    def _print(self, message: str) -> None:
        if self.console is not None:
            print(f"{LOG_PREFIX} {message}", file=self.console)

    def _proxy_for(self, target: Target) -> Optional[ProxyConfiguration]:
        if not target.using_proxy or self.proxy is None:
            return None
        host = httpx.URL(target.url).host
        return self.proxy if self.proxy.applies_to(host) else None

    def publish(self, batch: Sequence[Point], target: Target) -> PublishOutcome:
        """
        Write the batch to one target.

        Args:
            batch: Points of the run, written as one request
            target: Destination

        Returns:
            Outcome of the write

        Raises:
            InfluxReportError: write failed and the target exposes exceptions
        """
        target_name = str(target)
        self._print(f"Publishing data to: {target_name}")
        logger.debug(f"Publishing {len(batch)} points to {target_name}")

        if not is_valid_http_url(target.url):
            self._print(f"Skipping target due to invalid URL: {target.safe_url()}")
            logger.warning(f"Skipping target with invalid URL: {sanitize_for_log(target.safe_url())}")
            return PublishOutcome(target=target_name, status=PublishStatus.SKIPPED, error="invalid URL")

        if not batch:
            logger.info(f"No points to write to {target_name}")
            return PublishOutcome(target=target_name, status=PublishStatus.SKIPPED)

        try:
            self._write(batch, target)
        except Exception as e:
            if target.expose_exceptions:
                raise InfluxReportError(f"Could not report to InfluxDB target {target_name}: {e}") from e
            # Exceptions not exposed by configuration, just log and go on
            log_write_outcome(target_name, False, len(batch), error=f"Ignoring Exception: {e}")
            return PublishOutcome(
                target=target_name, status=PublishStatus.FAILED, points=len(batch), error=str(e)
            )

        log_write_outcome(target_name, True, len(batch))
        return PublishOutcome(target=target_name, status=PublishStatus.WRITTEN, points=len(batch))

    def _write(self, batch: Sequence[Point], target: Target) -> None:
        proxy = self._proxy_for(target)
        client = self._client if self._client is not None else get_http_client(proxy)

        params = {
            "db": target.database,
            "consistency": CONSISTENCY_LEVEL,
            "precision": TIMESTAMP_PRECISION,
        }
        if target.retention_policy:
            params["rp"] = target.retention_policy

        auth = InfluxAuth(
            username=target.username if target.has_credentials else None,
            password=target.password_value(),
            proxy=proxy,
        )
        response = client.post(
            target.url.rstrip("/") + "/write",
            params=params,
            content=encode_batch(batch).encode("utf-8"),
            headers={"Content-Type": "text/plain; charset=utf-8"},
            auth=auth,
            timeout=self.timeout,
        )
        response.raise_for_status()

    def publish_all(self, batch: Sequence[Point], targets: Sequence[Target]) -> List[PublishOutcome]:
        """
        Write the batch to every target.

        Every target is attempted even after a failure. If any exposing
        target failed, the first InfluxReportError is raised once all
        targets have been processed; it carries the outcomes of the run.
        """
        outcomes: List[PublishOutcome] = []
        first_error: Optional[InfluxReportError] = None

        for target in targets:
            try:
                outcomes.append(self.publish(batch, target))
            except InfluxReportError as e:
                logger.error(f"Write to {target} failed: {e}")
                outcomes.append(
                    PublishOutcome(
                        target=str(target),
                        status=PublishStatus.FAILED,
                        points=len(batch),
                        error=str(e.__cause__ or e),
                    )
                )
                if first_error is None:
                    first_error = e

        if first_error is not None:
            first_error.outcomes = outcomes
            raise first_error
        return outcomes
