"""Pydantic models for the agent configuration, results and HTTP API."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

# ── Stored options ────────────────────────────────────────────────────────────


class AgentOptions(BaseModel):
    """Raw option strings as stored by the host.

    Values may contain ``{{ field }}`` placeholders that are filled from the
    triggering event before the write.
    """

    url: str = Field("", description="InfluxDB base URL, e.g. http://influxdb:8086")
    database: str = Field("", description="Database name (v1) or bucket name (v2)")
    data: str = Field("", description="Line-protocol payload, sent verbatim")
    debug: str = Field("false", description="Log URL and response body")
    expected_receive_period_in_days: str = Field(
        "2", description="Max days without an emitted event before the agent is not working"
    )
    emit_events: str = Field("false", description="Emit the HTTP status as an event")
    influxdb_version: str = Field("", description="v1 | v2 | blank")
    token: str = Field("", description="API token (v2 only)")
    org: str = Field("", description="Organisation (v2 only)")


# ── Resolved configuration ────────────────────────────────────────────────────


class V1Target(BaseModel):
    """InfluxDB 1.x ``/write`` endpoint."""

    model_config = ConfigDict(frozen=True)

    version: Literal["v1"] = "v1"
    database: str


class V2Target(BaseModel):
    """InfluxDB 2.x ``/api/v2/write`` endpoint."""

    model_config = ConfigDict(frozen=True)

    version: Literal["v2"] = "v2"
    bucket: str
    org: str
    token: str


class Configuration(BaseModel):
    """Fully interpolated and validated configuration for one write.

    ``target`` is ``None`` when no InfluxDB version was configured; such a
    configuration is accepted but nothing is written.
    """

    model_config = ConfigDict(frozen=True)

    url: str
    data: str
    target: V1Target | V2Target | None = None
    debug: bool = False
    emit_events: bool = False
    expected_receive_period_in_days: int = Field(2, gt=0)

    @property
    def influxdb_version(self) -> str:
        return self.target.version if self.target is not None else ""

    @property
    def database(self) -> str:
        if isinstance(self.target, V2Target):
            return self.target.bucket
        if isinstance(self.target, V1Target):
            return self.target.database
        return ""

    @property
    def token(self) -> str:
        return self.target.token if isinstance(self.target, V2Target) else ""

    @property
    def org(self) -> str:
        return self.target.org if isinstance(self.target, V2Target) else ""


class WriteResult(BaseModel):
    """Outcome of a single InfluxDB write request."""

    status_code: int
    url: str
    body: str | None = Field(None, description="Response body, captured only in debug mode")
    event: dict[str, Any] | None = Field(
        None, description='Output event {"http_status": "<code>"} when emit_events is set'
    )


# ── Agent log / events ────────────────────────────────────────────────────────


class AgentEvent(BaseModel):
    id: int
    payload: dict[str, Any]
    created_at: datetime


class AgentLogEntry(BaseModel):
    level: int
    message: str
    created_at: datetime


# ── HTTP API ──────────────────────────────────────────────────────────────────


class ReceiveRequest(BaseModel):
    """Events delivered by an upstream agent.

    Either a single ``payload`` or a list of ``events`` payloads; both may be
    given, in which case ``events`` are processed first.
    """

    payload: dict[str, Any] | None = None
    events: list[dict[str, Any]] = Field(default_factory=list)


class DryRunRequest(BaseModel):
    payload: dict[str, Any] | None = None


class RunResponse(BaseModel):
    status: str = Field(..., description="written | skipped")
    http_status: str | None = None
    event: dict[str, Any] | None = None


class ReceiveResponse(BaseModel):
    results: list[RunResponse]


class DryRunResponse(BaseModel):
    log: list[AgentLogEntry]
    events: list[AgentEvent]


class AgentInfoResponse(BaseModel):
    name: str
    description: str
    event_description: str
    options: dict[str, str]
    working: bool


class HealthResponse(BaseModel):
    status: str = "ok"
    service: str = "influxdb-write-data-agent"
    agent: str
    working: bool = Field(..., description="False until an event was emitted within the receive period")
