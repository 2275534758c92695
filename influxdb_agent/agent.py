"""InfluxDB write-data agent.

Runs in two modes:

* **scheduled**: :meth:`InfluxDBWriteDataAgent.check` is called on a timer
  and writes the stored ``data`` option as-is.
* **reactive**: :meth:`InfluxDBWriteDataAgent.receive` is called with the
  payloads of incoming events; options are interpolated against each payload
  and one write is issued per event, in order.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from influxdb_agent.clients.agent_log import AgentLog
from influxdb_agent.clients.influxdb import InfluxDBWriter, TransportError
from influxdb_agent.models import AgentOptions, DryRunResponse, WriteResult
from influxdb_agent.options import (
    ConfigError,
    ConfigResolver,
    parse_receive_period,
    validate_options,
)

logger = logging.getLogger(__name__)

DESCRIPTION = """\
The InfluxDB write data agent POSTs line protocol to an InfluxDB write endpoint,
either on its schedule or once per received event.

`url` is the InfluxDB url (ex: http://influxdb:8086).

`influxdb_version` selects the API: `v1` writes to `/write?db=<database>`,
`v2` writes to `/api/v2/write?org=<org>&bucket=<database>&precision=ns` and
requires `token` and `org`. When left blank nothing is written.

`database` is the database's name (v1) or the bucket's name (v2).

`debug` is used for verbose mode: the request URL and the response body are logged.

`data` is the equivalent of data-binary in a curl command
(ex: campaigns_number,region=fr value=1111 1603573200000000000).
Options may reference fields of the incoming event, e.g. `{{ value }}`.

If `emit_events` is set to `true`, the server response status will be emitted as an Event.
The response body is never inspected.

`expected_receive_period_in_days` is used to determine if the Agent is working. Set it to
the maximum number of days that you anticipate passing without this Agent emitting an Event.
"""

EVENT_DESCRIPTION = """\
Events look like this:
  {
    "http_status": "204"
  }
"""


class InfluxDBWriteDataAgent:
    """Host-facing agent: holds the stored options and drives the writer."""

    description = DESCRIPTION
    event_description = EVENT_DESCRIPTION

    def __init__(
        self,
        writer: InfluxDBWriter,
        resolver: ConfigResolver,
        reporter: AgentLog,
        options: Mapping[str, Any] | None = None,
        name: str = "InfluxdbWriteDataAgent",
    ) -> None:
        self.name = name
        self._writer = writer
        self._resolver = resolver
        self._reporter = reporter
        self._options: dict[str, Any] = {**self.default_options(), **(options or {})}

    @staticmethod
    def default_options() -> dict[str, str]:
        return AgentOptions().model_dump()

    @property
    def options(self) -> dict[str, Any]:
        return dict(self._options)

    @property
    def reporter(self) -> AgentLog:
        return self._reporter

    def update_options(self, options: Mapping[str, Any]) -> None:
        """Validate and replace the stored options.

        Raises:
            ConfigError: if *options* are invalid; the previous options are kept.
        """
        errors = validate_options(options)
        if errors:
            raise ConfigError(errors)
        self._options = dict(options)
        logger.info("Options updated for agent %s", self.name)

    # ── Invocation ───────────────────────────────────────────────────────────

    async def check(self) -> WriteResult | None:
        """Scheduled run: write the stored options without an event."""
        return await self._run(None, self._reporter)

    async def receive(
        self, events: Iterable[Mapping[str, Any]]
    ) -> list[WriteResult | None]:
        """Reactive run: one write per event payload, in order.

        Stops at the first event that fails; writes already issued stay written.
        """
        results: list[WriteResult | None] = []
        for payload in events:
            results.append(await self._run(payload, self._reporter))
        return results

    async def dry_run(self, payload: Mapping[str, Any] | None = None) -> DryRunResponse:
        """Run once against a throw-away agent log and return what happened.

        The HTTP request is really sent.  Errors are reported in the returned
        log instead of being raised.
        """
        scratch = AgentLog()
        try:
            await self._run(payload, scratch)
        except (ConfigError, TransportError) as exc:
            logger.info("Dry run of agent %s failed: %s", self.name, exc)
        return DryRunResponse(log=scratch.logs(), events=scratch.events())

    async def _run(
        self, payload: Mapping[str, Any] | None, reporter: AgentLog
    ) -> WriteResult | None:
        try:
            config = self._resolver.resolve(self._options, payload)
        except ConfigError as exc:
            reporter.error(f"Invalid options: {exc}")
            raise

        try:
            result = await self._writer.write(config, reporter=reporter)
        except TransportError as exc:
            reporter.error(str(exc))
            raise

        if result is not None and result.event is not None:
            reporter.create_event(result.event)
        return result

    # ── Health ───────────────────────────────────────────────────────────────

    def working(self) -> bool:
        """True if an event was emitted recently and no error followed it."""
        days = parse_receive_period(self._options.get("expected_receive_period_in_days"))
        if days is None:
            return False
        return self._reporter.event_created_within(days) and not self._reporter.recent_error_logs()
