"""Unit tests for the /agent endpoints and GET /health."""

from __future__ import annotations

from unittest.mock import AsyncMock

from fastapi.testclient import TestClient

from influxdb_agent.agent import InfluxDBWriteDataAgent
from influxdb_agent.clients.influxdb import InfluxDBWriter, TransportError
from tests.conftest import V2_OPTIONS, options

# ── Health ────────────────────────────────────────────────────────────────────


def test_health(test_client: TestClient) -> None:
    resp = test_client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {
        "status": "ok",
        "service": "influxdb-write-data-agent",
        "agent": "InfluxdbWriteDataAgent",
        "working": False,
    }


def test_health_reports_working_after_a_write(test_client: TestClient) -> None:
    test_client.post("/agent/check")
    assert test_client.get("/health").json()["working"] is True


# ── Agent info / options ──────────────────────────────────────────────────────


def test_agent_info(test_client: TestClient) -> None:
    resp = test_client.get("/agent")
    assert resp.status_code == 200
    body = resp.json()
    assert body["options"]["database"] == "db1"
    assert body["working"] is False
    assert "http_status" in body["event_description"]


def test_update_options_masks_token(test_client: TestClient) -> None:
    resp = test_client.put("/agent/options", json=V2_OPTIONS)
    assert resp.status_code == 200
    assert resp.json()["options"]["token"] == "****"
    assert resp.json()["options"]["influxdb_version"] == "v2"


def test_update_options_invalid_returns_422(
    test_client: TestClient, agent: InfluxDBWriteDataAgent
) -> None:
    resp = test_client.put(
        "/agent/options", json={**V2_OPTIONS, "token": "", "org": ""}
    )
    assert resp.status_code == 422
    assert resp.json()["detail"] == [
        "token is a required field when influxdb_version is v2",
        "org is a required field when influxdb_version is v2",
    ]
    assert agent.options["influxdb_version"] == "v1"


def test_update_options_malformed_url_returns_422(
    test_client: TestClient, agent: InfluxDBWriteDataAgent
) -> None:
    resp = test_client.put("/agent/options", json=options(url="http://h:abc"))
    assert resp.status_code == 422
    assert resp.json()["detail"] == ["url must be an http or https URL with a host"]
    assert agent.options["url"] == "http://h:8086"


# ── check ─────────────────────────────────────────────────────────────────────


def test_check_writes(test_client: TestClient, mock_writer: InfluxDBWriter) -> None:
    resp = test_client.post("/agent/check")
    assert resp.status_code == 200
    assert resp.json() == {
        "status": "written",
        "http_status": "204",
        "event": {"http_status": "204"},
    }
    mock_writer.write.assert_awaited_once()  # type: ignore[attr-defined]


def test_check_skipped_when_nothing_written(
    test_client: TestClient, mock_writer: InfluxDBWriter
) -> None:
    mock_writer.write = AsyncMock(return_value=None)  # type: ignore[method-assign]
    resp = test_client.post("/agent/check")
    assert resp.status_code == 200
    assert resp.json()["status"] == "skipped"
    assert resp.json()["event"] is None


def test_check_transport_error_returns_503(
    test_client: TestClient, mock_writer: InfluxDBWriter
) -> None:
    mock_writer.write = AsyncMock(  # type: ignore[method-assign]
        side_effect=TransportError("connection refused")
    )
    resp = test_client.post("/agent/check")
    assert resp.status_code == 503
    assert "InfluxDB unreachable" in resp.json()["detail"]
    assert test_client.get("/agent/events").json() == []


def test_check_invalid_options_returns_422(
    test_client: TestClient, agent: InfluxDBWriteDataAgent, mock_writer: InfluxDBWriter
) -> None:
    agent._options = options(data="")  # bypass validation on save
    resp = test_client.post("/agent/check")
    assert resp.status_code == 422
    assert resp.json()["detail"] == ["data is a required field"]
    mock_writer.write.assert_not_called()  # type: ignore[attr-defined]


# ── receive ───────────────────────────────────────────────────────────────────


def test_receive_single_payload(
    test_client: TestClient, agent: InfluxDBWriteDataAgent, mock_writer: InfluxDBWriter
) -> None:
    agent.update_options(options(data="temp,room={{ room }} value={{ value }}"))
    resp = test_client.post(
        "/agent/receive", json={"payload": {"room": "hall", "value": 19}}
    )
    assert resp.status_code == 200
    assert resp.json()["results"][0]["status"] == "written"
    config = mock_writer.write.call_args.args[0]  # type: ignore[attr-defined]
    assert config.data == "temp,room=hall value=19"


def test_receive_event_list(
    test_client: TestClient, mock_writer: InfluxDBWriter
) -> None:
    resp = test_client.post("/agent/receive", json={"events": [{"a": 1}, {"a": 2}]})
    assert resp.status_code == 200
    assert len(resp.json()["results"]) == 2
    assert mock_writer.write.await_count == 2  # type: ignore[attr-defined]
    assert len(test_client.get("/agent/events").json()) == 2


def test_receive_without_events_returns_422(test_client: TestClient) -> None:
    resp = test_client.post("/agent/receive", json={})
    assert resp.status_code == 422


# ── dry run / logs ────────────────────────────────────────────────────────────


def test_dry_run_does_not_store_events(test_client: TestClient) -> None:
    resp = test_client.post("/agent/dry_run", json={"payload": {"x": 1}})
    assert resp.status_code == 200
    assert resp.json()["events"][0]["payload"] == {"http_status": "204"}
    assert test_client.get("/agent/events").json() == []


def test_dry_run_without_body(test_client: TestClient) -> None:
    resp = test_client.post("/agent/dry_run")
    assert resp.status_code == 200
    assert len(resp.json()["events"]) == 1


def test_logs_newest_first(
    test_client: TestClient, agent: InfluxDBWriteDataAgent
) -> None:
    agent.reporter.log("first")
    agent.reporter.error("second")
    body = test_client.get("/agent/logs").json()
    assert [entry["message"] for entry in body] == ["second", "first"]
    assert body[0]["level"] == 4
