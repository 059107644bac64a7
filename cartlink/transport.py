"""HTTP transport used by retailer adapters.

``ApiClient`` wraps one ``httpx.AsyncClient`` bound to a retailer base URL and
header set. It refuses private/loopback targets, raises on non-2xx answers
and sanitizes JSON bodies before adapters see them. It never retries.
"""

from __future__ import annotations

import ipaddress
import logging
import re
from typing import Any
from urllib.parse import urlparse

import httpx

from .config import DEFAULT_HTTP_TIMEOUT
from .errors import SecurityRejection, UpstreamError

logger = logging.getLogger(__name__)

MAX_STRING_LENGTH = 10000
MAX_ARRAY_LENGTH = 1000
MAX_OBJECT_KEYS = 100
MAX_KEY_LENGTH = 100

_SCRIPT_BLOCK = re.compile(r"<script[^>]*>.*?</script>", re.IGNORECASE | re.DOTALL)
_BLOCKED_HOSTNAMES = {"localhost", "localhost.localdomain", "ip6-localhost", "ip6-loopback"}


def is_private_host(hostname: str) -> bool:
    """True for loopback, private, link-local and otherwise internal hosts."""
    host = hostname.strip("[]").lower()
    if not host or host in _BLOCKED_HOSTNAMES or host.endswith(".localhost"):
        return True
    try:
        address = ipaddress.ip_address(host)
    except ValueError:
        return False
    return (
        address.is_private
        or address.is_loopback
        or address.is_link_local
        or address.is_reserved
        or address.is_unspecified
        or address.is_multicast
    )


def validate_url(url: str) -> None:
    """Raise SecurityRejection unless ``url`` is a public http(s) URL."""
    try:
        parsed = urlparse(url)
    except ValueError as exc:
        raise SecurityRejection("Invalid URL format") from exc
    if parsed.scheme not in ("http", "https"):
        raise SecurityRejection("Invalid protocol")
    if not parsed.hostname:
        raise SecurityRejection("Invalid URL format")
    if is_private_host(parsed.hostname):
        raise SecurityRejection("Private IP addresses not allowed")


def sanitize_payload(data: Any) -> Any:
    """Cap sizes and drop script blocks throughout a decoded JSON value."""
    if isinstance(data, str):
        return _SCRIPT_BLOCK.sub("", data)[:MAX_STRING_LENGTH]
    if isinstance(data, list):
        return [sanitize_payload(item) for item in data[:MAX_ARRAY_LENGTH]]
    if isinstance(data, dict):
        sanitized = {}
        for key in list(data.keys())[:MAX_OBJECT_KEYS]:
            clean_key = re.sub(r"[<>]", "", str(key))[:MAX_KEY_LENGTH]
            sanitized[clean_key] = sanitize_payload(data[key])
        return sanitized
    return data


class ApiClient:
    """Async HTTP client bound to a single retailer base URL."""

    def __init__(
        self,
        base_url: str,
        default_headers: dict[str, str] | None = None,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.default_headers = dict(default_headers or {})
        self.timeout = timeout
        # Redirects are not followed so a 3xx cannot bounce us to an internal host.
        self._client = httpx.AsyncClient(
            headers=self.default_headers,
            timeout=httpx.Timeout(timeout),
            follow_redirects=False,
            transport=transport,
        )

    def build_url(self, endpoint: str) -> str:
        if endpoint.startswith("http://") or endpoint.startswith("https://"):
            return endpoint
        return f"{self.base_url}{endpoint}"

    async def request(
        self,
        method: str,
        endpoint: str,
        params: dict[str, Any] | None = None,
        body: Any = None,
        headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ) -> Any:
        """Perform a request and return parsed JSON or text.

        Raises:
            SecurityRejection: target host or scheme is not allowed
            UpstreamError: transport failure, timeout or non-2xx status
        """
        url = self.build_url(endpoint)
        validate_url(url)

        kwargs: dict[str, Any] = {}
        if params:
            kwargs["params"] = {k: str(v) for k, v in params.items() if v is not None}
        if headers:
            kwargs["headers"] = headers
        if timeout is not None:
            kwargs["timeout"] = httpx.Timeout(timeout)
        if method.upper() != "GET" and body is not None:
            if isinstance(body, (str, bytes)):
                kwargs["content"] = body
            else:
                kwargs["json"] = body

        try:
            resp = await self._client.request(method.upper(), url, **kwargs)
        except httpx.TimeoutException as exc:
            raise UpstreamError("Request timeout") from exc
        except httpx.HTTPError as exc:
            raise UpstreamError(f"API request failed: {exc}") from exc

        if not resp.is_success:
            raise UpstreamError(f"HTTP {resp.status_code}: {resp.reason_phrase}")

        content_type = resp.headers.get("content-type", "")
        if "application/json" in content_type:
            try:
                data = resp.json()
            except ValueError as exc:
                raise UpstreamError("Malformed JSON response") from exc
            return sanitize_payload(data)
        return resp.text

    async def get(self, endpoint: str, params: dict[str, Any] | None = None, **kwargs: Any) -> Any:
        return await self.request("GET", endpoint, params=params, **kwargs)

    async def post(self, endpoint: str, body: Any = None, **kwargs: Any) -> Any:
        return await self.request("POST", endpoint, body=body, **kwargs)

    async def put(self, endpoint: str, body: Any = None, **kwargs: Any) -> Any:
        return await self.request("PUT", endpoint, body=body, **kwargs)

    async def delete(self, endpoint: str, **kwargs: Any) -> Any:
        return await self.request("DELETE", endpoint, **kwargs)

    async def aclose(self) -> None:
        await self._client.aclose()
