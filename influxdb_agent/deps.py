"""FastAPI dependency providers.

The agent and its collaborators are singletons created here and injected via
``Depends``.  Tests override these functions via ``app.dependency_overrides``.
"""

import json
import logging
from functools import lru_cache
from typing import Any

from influxdb_agent.agent import InfluxDBWriteDataAgent
from influxdb_agent.clients.agent_log import AgentLog
from influxdb_agent.clients.influxdb import InfluxDBWriter
from influxdb_agent.config import Settings
from influxdb_agent.options import ConfigResolver

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


def _initial_options(settings: Settings) -> dict[str, Any]:
    if not settings.options_json:
        return {}
    try:
        options = json.loads(settings.options_json)
    except (json.JSONDecodeError, ValueError):
        logger.error("OPTIONS_JSON is not valid JSON – starting with default options")
        return {}
    if not isinstance(options, dict):
        logger.error("OPTIONS_JSON must be a JSON object – starting with default options")
        return {}
    return {key: _option_string(value) for key, value in options.items()}


def _option_string(value: Any) -> str:
    """Stored options are strings; JSON booleans become "true" / "false"."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return str(value).lower()
    return str(value)


@lru_cache(maxsize=1)
def get_agent() -> InfluxDBWriteDataAgent:
    settings = get_settings()
    reporter = AgentLog(
        max_logs=settings.log_store_size,
        max_events=settings.event_store_size,
    )
    return InfluxDBWriteDataAgent(
        writer=InfluxDBWriter(reporter, timeout=settings.http_timeout_seconds),
        resolver=ConfigResolver(legacy_v1_fallback=settings.legacy_v1_fallback),
        reporter=reporter,
        options=_initial_options(settings),
        name=settings.agent_name,
    )
