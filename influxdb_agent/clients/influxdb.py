"""InfluxDB HTTP write client (v1 ``/write`` and v2 ``/api/v2/write``).

The payload is pre-formatted line protocol and is POSTed verbatim.  One
``httpx.AsyncClient`` is opened per write and closed afterwards; there is no
connection reuse and no retry.  Every HTTP status counts as a completed
write; only a failure to obtain a response is an error.
"""

from __future__ import annotations

import logging

import httpx

from influxdb_agent.clients.agent_log import AgentLog
from influxdb_agent.models import Configuration, V1Target, V2Target, WriteResult
from influxdb_agent.options import INVALID_URL_MESSAGE, ConfigError, valid_url

logger = logging.getLogger(__name__)

MISSING_VERSION_MESSAGE = "influxdb_version is missing or invalid, nothing was written"


class TransportError(Exception):
    """Raised when the write request cannot complete (connect, DNS, TLS, timeout)."""


def build_write_url(config: Configuration) -> str:
    """Return the write endpoint for *config*.

    Query values are concatenated as given and not percent-encoded; callers
    supply already-safe names.
    """
    target = config.target
    if isinstance(target, V2Target):
        return (
            f"{config.url}/api/v2/write"
            f"?org={target.org}&bucket={target.bucket}&precision=ns"
        )
    if isinstance(target, V1Target):
        return f"{config.url}/write?db={target.database}"
    raise ConfigError(MISSING_VERSION_MESSAGE)


def build_headers(target: V1Target | V2Target) -> dict[str, str]:
    """Return the extra request headers for *target* (none for v1)."""
    if isinstance(target, V2Target):
        return {
            "Authorization": f"token {target.token}",
            "Accept": "application/json",
            "Content-Type": "text/plain; charset=utf-8",
        }
    return {}


def _check_required(config: Configuration) -> None:
    errors: list[str] = []
    if not config.url:
        errors.append("url is a required field")
    elif not valid_url(config.url):
        errors.append(INVALID_URL_MESSAGE)
    if not config.data:
        errors.append("data is a required field")
    target = config.target
    if target is not None and not config.database:
        errors.append("database is a required field")
    if isinstance(target, V2Target):
        if not target.token:
            errors.append("token is a required field when influxdb_version is v2")
        if not target.org:
            errors.append("org is a required field when influxdb_version is v2")
    if errors:
        raise ConfigError(errors)


class InfluxDBWriter:
    """Async writer for the InfluxDB line-protocol write endpoints."""

    def __init__(
        self,
        reporter: AgentLog,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._reporter = reporter
        self._timeout = timeout
        self._transport = transport

    async def write(
        self, config: Configuration, reporter: AgentLog | None = None
    ) -> WriteResult | None:
        """POST ``config.data`` to the endpoint selected by ``config.target``.

        Args:
            config:   Resolved configuration for this invocation.
            reporter: Agent log to report to instead of the writer's own
                      (used for dry runs).

        Returns:
            The write result, or ``None`` when no InfluxDB version is
            configured and nothing was sent.

        Raises:
            ConfigError:    if a required field is empty (no request is made).
            TransportError: if no HTTP response could be obtained.
        """
        reporter = reporter or self._reporter
        _check_required(config)

        target = config.target
        if target is None:
            reporter.error(MISSING_VERSION_MESSAGE)
            return None

        url = build_write_url(config)
        if config.debug:
            reporter.log(url)

        logger.debug("POST %s (%d bytes)", url, len(config.data))
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                resp = await client.post(
                    url,
                    content=config.data.encode("utf-8"),
                    headers=build_headers(target),
                )
        except httpx.RequestError as exc:
            raise TransportError(f"InfluxDB write to {url} failed: {exc!r}") from exc

        status = str(resp.status_code)
        reporter.log(f"request status : {status}")

        body: str | None = None
        if config.debug:
            body = resp.text
            reporter.log(f"response body : {body}")

        return WriteResult(
            status_code=resp.status_code,
            url=url,
            body=body,
            event={"http_status": status} if config.emit_events else None,
        )
