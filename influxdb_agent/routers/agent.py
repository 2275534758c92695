"""Agent endpoints used by the host pipeline.

    GET  /agent            → description, options (token masked), working status
    PUT  /agent/options    → replace the stored options (validated)
    POST /agent/check      → scheduled-style run, no event
    POST /agent/receive    → one write per received event payload
    POST /agent/dry_run    → run once without touching the agent's log / events
    GET  /agent/events     → emitted events, newest first
    GET  /agent/logs       → agent log, newest first
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException

from influxdb_agent.agent import InfluxDBWriteDataAgent
from influxdb_agent.clients.influxdb import TransportError
from influxdb_agent.deps import get_agent
from influxdb_agent.models import (
    AgentEvent,
    AgentInfoResponse,
    AgentLogEntry,
    AgentOptions,
    DryRunRequest,
    DryRunResponse,
    ReceiveRequest,
    ReceiveResponse,
    RunResponse,
    WriteResult,
)
from influxdb_agent.options import ConfigError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/agent", tags=["agent"])

_SECRET_OPTIONS = ("token",)

# ── Helpers ────────────────────────────────────────────────────────────────────


def _masked(options: dict[str, Any]) -> dict[str, str]:
    masked = {key: "" if value is None else str(value) for key, value in options.items()}
    for key in _SECRET_OPTIONS:
        if masked.get(key):
            masked[key] = "****"
    return masked


def _info(agent: InfluxDBWriteDataAgent) -> AgentInfoResponse:
    return AgentInfoResponse(
        name=agent.name,
        description=agent.description,
        event_description=agent.event_description,
        options=_masked(agent.options),
        working=agent.working(),
    )


def _run_response(result: WriteResult | None) -> RunResponse:
    if result is None:
        return RunResponse(status="skipped")
    return RunResponse(
        status="written",
        http_status=str(result.status_code),
        event=result.event,
    )


def _config_error(exc: ConfigError) -> HTTPException:
    return HTTPException(status_code=422, detail=exc.messages)


def _transport_error(exc: TransportError) -> HTTPException:
    return HTTPException(status_code=503, detail=f"InfluxDB unreachable: {exc}")


# ── Routes ───────────────────────────────────────────────────────────────────


@router.get("", response_model=AgentInfoResponse)
async def agent_info(
    agent: InfluxDBWriteDataAgent = Depends(get_agent),
) -> AgentInfoResponse:
    """Return the agent description, its options and whether it is working."""
    return _info(agent)


@router.put(
    "/options",
    response_model=AgentInfoResponse,
    summary="Replace the agent options",
)
async def update_options(
    body: AgentOptions,
    agent: InfluxDBWriteDataAgent = Depends(get_agent),
) -> AgentInfoResponse:
    try:
        agent.update_options(body.model_dump())
    except ConfigError as exc:
        raise _config_error(exc) from exc
    return _info(agent)


@router.post(
    "/check",
    response_model=RunResponse,
    summary="Scheduled run",
    description="Write the stored options to InfluxDB without a triggering event.",
)
async def check(
    agent: InfluxDBWriteDataAgent = Depends(get_agent),
) -> RunResponse:
    try:
        result = await agent.check()
    except ConfigError as exc:
        raise _config_error(exc) from exc
    except TransportError as exc:
        raise _transport_error(exc) from exc
    return _run_response(result)


@router.post(
    "/receive",
    response_model=ReceiveResponse,
    summary="Receive events",
    description=(
        "Interpolate the options against each event payload and issue one "
        "InfluxDB write per event."
    ),
)
async def receive(
    body: ReceiveRequest,
    agent: InfluxDBWriteDataAgent = Depends(get_agent),
) -> ReceiveResponse:
    events = list(body.events)
    if body.payload is not None:
        events.append(body.payload)
    if not events:
        raise HTTPException(status_code=422, detail=["no event payload given"])

    try:
        results = await agent.receive(events)
    except ConfigError as exc:
        raise _config_error(exc) from exc
    except TransportError as exc:
        raise _transport_error(exc) from exc

    logger.debug("Agent %s received %d event(s)", agent.name, len(events))
    return ReceiveResponse(results=[_run_response(result) for result in results])


@router.post("/dry_run", response_model=DryRunResponse)
async def dry_run(
    body: DryRunRequest | None = None,
    agent: InfluxDBWriteDataAgent = Depends(get_agent),
) -> DryRunResponse:
    """Run once; the log and events are returned instead of stored."""
    payload = body.payload if body is not None else None
    return await agent.dry_run(payload)


@router.get("/events", response_model=list[AgentEvent])
async def list_events(
    agent: InfluxDBWriteDataAgent = Depends(get_agent),
) -> list[AgentEvent]:
    return agent.reporter.events()


@router.get("/logs", response_model=list[AgentLogEntry])
async def list_logs(
    agent: InfluxDBWriteDataAgent = Depends(get_agent),
) -> list[AgentLogEntry]:
    return agent.reporter.logs()
