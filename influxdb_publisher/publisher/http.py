"""
Shared HTTP clients and authentication.

One httpx.Client per proxy setting is created lazily and then reused by every
publication run in the process; httpx clients pool connections and are safe
to share between threads. Clients are never reconfigured after creation.
"""

import base64
import logging
import threading
from typing import Dict, Generator, Optional, Tuple

import httpx

from influxdb_publisher.config import ProxyConfiguration

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0

_ClientKey = Optional[Tuple[str, Optional[str], str]]

_clients: Dict[_ClientKey, httpx.Client] = {}
_clients_lock = threading.Lock()


def basic_credentials(username: str, password: str) -> str:
    """Value for a Proxy-Authorization basic header."""
    token = base64.b64encode(f"{username}:{password}".encode("utf-8")).decode("ascii")
    return f"Basic {token}"


def _client_key(proxy: Optional[ProxyConfiguration]) -> _ClientKey:
    if proxy is None:
        return None
    return (proxy.url, proxy.username, proxy.password_value())


def _create_client(proxy: Optional[ProxyConfiguration]) -> httpx.Client:
    if proxy is None:
        return httpx.Client(timeout=DEFAULT_TIMEOUT, trust_env=False)

    # Plain HTTP requests see the proxy's 407 and InfluxAuth answers it.
    # HTTPS tunnels fail inside CONNECT before any auth flow runs, so the
    # tunnel gets the credentials up front.
    tunnel_auth = None
    if proxy.has_credentials:
        tunnel_auth = (proxy.username, proxy.password_value())

    mounts = {
        "http://": httpx.HTTPTransport(proxy=httpx.Proxy(proxy.url)),
        "https://": httpx.HTTPTransport(proxy=httpx.Proxy(proxy.url, auth=tunnel_auth)),
    }
    return httpx.Client(timeout=DEFAULT_TIMEOUT, trust_env=False, mounts=mounts)


def get_http_client(proxy: Optional[ProxyConfiguration] = None) -> httpx.Client:
    """
    Get the shared client for a proxy setting.

    Args:
        proxy: Proxy to route through, None for direct connections

    Returns:
        Process-wide pooled client
    """
    key = _client_key(proxy)
    client = _clients.get(key)
    if client is not None:
        return client

    with _clients_lock:
        client = _clients.get(key)
        if client is None:
            client = _create_client(proxy)
            _clients[key] = client
            logger.debug(f"Created HTTP client (proxy={proxy.url if proxy else None})")
    return client


def close_http_clients() -> None:
    """Close all shared clients. Only needed in tests and at interpreter shutdown."""
    with _clients_lock:
        for client in _clients.values():
            client.close()
        _clients.clear()


class InfluxAuth(httpx.Auth):
    """
    Target and proxy authentication for one write.

    Target credentials are sent up front as basic auth. Proxy credentials are
    only sent in answer to a 407 challenge, and only once: a second 407 means
    the proxy rejected them and is returned to the caller as the final
    response.
    """

    requires_request_body = True

    def __init__(
        self,
        username: Optional[str] = None,
        password: str = "",
        proxy: Optional[ProxyConfiguration] = None,
    ):
        self.target_auth = httpx.BasicAuth(username, password) if username else None
        self.proxy = proxy

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        if self.target_auth is not None:
            # BasicAuth sets the Authorization header and yields the request once
            request = next(self.target_auth.auth_flow(request))

        response = yield request

        if response.status_code != 407:
            return
        if self.proxy is None or not self.proxy.has_credentials:
            return
        if "Proxy-Authorization" in request.headers:
            return

        logger.debug("Proxy requested authentication, retrying once with credentials")
        request.headers["Proxy-Authorization"] = basic_credentials(
            self.proxy.username, self.proxy.password_value()
        )
        yield request
