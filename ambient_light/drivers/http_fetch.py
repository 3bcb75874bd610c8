from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from ..core.config import settings
from ..core.errors import ConfigError, TransportError
from ..domain.models import FetchResult, UrlSpec

logger = logging.getLogger(__name__)


def parse_url_property(value: Any) -> UrlSpec:
    """Parse a ``getUrl``-style property: a URL string or an object with
    ``url`` and optional ``method``, ``body``, ``headers``, ``auth``
    ({username, password}) and ``timeout`` (milliseconds)."""
    if isinstance(value, str):
        value = {"url": value}
    if not isinstance(value, dict):
        raise ConfigError("url property must be a string or an object")

    url = value.get("url")
    if not isinstance(url, str) or not url:
        raise ConfigError("'url' is required")
    try:
        parsed = httpx.URL(url)
    except httpx.InvalidURL as e:
        raise ConfigError(f"Invalid url {url!r}: {e}") from e
    if parsed.scheme not in ("http", "https") or not parsed.host:
        raise ConfigError(f"Unsupported url {url!r}")

    method = str(value.get("method", "GET")).upper()

    body = value.get("body")
    if body is not None and not isinstance(body, str):
        raise ConfigError("'body' must be a string")

    headers = value.get("headers")
    if headers is not None:
        if not isinstance(headers, dict):
            raise ConfigError("'headers' must be an object")
        headers = {str(k): str(v) for k, v in headers.items()}

    username = password = None
    auth = value.get("auth")
    if auth is not None:
        if not isinstance(auth, dict) or "username" not in auth:
            raise ConfigError("'auth' must be an object with 'username' and 'password'")
        username = str(auth["username"])
        password = str(auth.get("password", ""))

    timeout_s: Optional[float] = None
    if value.get("timeout") is not None:
        try:
            timeout_s = float(value["timeout"]) / 1000.0
        except (TypeError, ValueError) as e:
            raise ConfigError("'timeout' must be a number of milliseconds") from e

    return UrlSpec(
        url=url,
        method=method,
        body=body,
        headers=headers,
        username=username,
        password=password,
        timeout_s=timeout_s,
    )


class HttpFetcher:
    """Fetch collaborator backed by httpx."""

    def __init__(
        self,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._timeout = timeout if timeout is not None else settings.http_timeout_seconds
        self._transport = transport

    async def get(self, spec: UrlSpec) -> FetchResult:
        auth = (spec.username, spec.password or "") if spec.username is not None else None
        timeout = spec.timeout_s if spec.timeout_s is not None else self._timeout
        try:
            async with httpx.AsyncClient(timeout=timeout, transport=self._transport) as client:
                resp = await client.request(
                    spec.method,
                    spec.url,
                    content=spec.body,
                    headers=spec.headers,
                    auth=auth,
                )
        except httpx.HTTPError as e:
            raise TransportError(f"{spec.method} {spec.url} failed: {e}") from e

        logger.debug("%s %s -> %d", spec.method, spec.url, resp.status_code)
        return FetchResult(status_code=resp.status_code, body=resp.text)
