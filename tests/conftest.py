"""Shared pytest fixtures and helpers.

The InfluxDB writer is replaced by a ``MagicMock`` via FastAPI's
``dependency_overrides`` mechanism for the API tests.  Writer tests run the
real client against ``httpx.MockTransport`` so no InfluxDB is needed.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from fastapi.testclient import TestClient

from influxdb_agent.agent import InfluxDBWriteDataAgent
from influxdb_agent.clients.agent_log import AgentLog
from influxdb_agent.clients.influxdb import InfluxDBWriter
from influxdb_agent.deps import get_agent
from influxdb_agent.main import app
from influxdb_agent.models import WriteResult
from influxdb_agent.options import ConfigResolver

# ── Constants ─────────────────────────────────────────────────────────────────

LINE = "campaigns_number,region=fr value=1111 1603573200000000000"

V1_OPTIONS: dict[str, str] = {
    "url": "http://h:8086",
    "database": "db1",
    "data": LINE,
    "debug": "false",
    "expected_receive_period_in_days": "2",
    "emit_events": "true",
    "influxdb_version": "v1",
    "token": "",
    "org": "",
}

V2_OPTIONS: dict[str, str] = {
    **V1_OPTIONS,
    "database": "b1",
    "influxdb_version": "v2",
    "token": "t1",
    "org": "o1",
}

# ── Transport helper ──────────────────────────────────────────────────────────


class RecordingTransport(httpx.MockTransport):
    """MockTransport that remembers every request it served."""

    def __init__(
        self,
        status_code: int = 204,
        text: str = "",
        error: Callable[[httpx.Request], Exception] | None = None,
    ) -> None:
        self.requests: list[httpx.Request] = []
        self._status_code = status_code
        self._text = text
        self._error = error
        super().__init__(self._handle)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self._error is not None:
            raise self._error(request)
        return httpx.Response(self._status_code, text=self._text)


# ── Fixtures ──────────────────────────────────────────────────────────────────


@pytest.fixture()
def reporter() -> AgentLog:
    return AgentLog()


@pytest.fixture()
def transport() -> RecordingTransport:
    return RecordingTransport(status_code=204)


@pytest.fixture()
def writer(reporter: AgentLog, transport: RecordingTransport) -> InfluxDBWriter:
    return InfluxDBWriter(reporter, timeout=5.0, transport=transport)


@pytest.fixture()
def mock_writer() -> InfluxDBWriter:
    client: InfluxDBWriter = MagicMock(spec=InfluxDBWriter)
    client.write = AsyncMock(  # type: ignore[method-assign]
        return_value=WriteResult(
            status_code=204,
            url="http://h:8086/write?db=db1",
            event={"http_status": "204"},
        )
    )
    return client


@pytest.fixture()
def agent(mock_writer: InfluxDBWriter, reporter: AgentLog) -> InfluxDBWriteDataAgent:
    return InfluxDBWriteDataAgent(
        writer=mock_writer,
        resolver=ConfigResolver(),
        reporter=reporter,
        options=V1_OPTIONS,
    )


@pytest.fixture()
def test_client(agent: InfluxDBWriteDataAgent) -> TestClient:
    app.dependency_overrides[get_agent] = lambda: agent
    yield TestClient(app)  # type: ignore[misc]
    app.dependency_overrides.clear()


def options(**overrides: Any) -> dict[str, Any]:
    """Return a copy of the v1 options with *overrides* applied."""
    return {**V1_OPTIONS, **overrides}
