"""Service configuration loaded from environment variables."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """All settings are read from environment variables (case-insensitive)."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # ── Agent ─────────────────────────────────────────────────────────────────
    agent_name: str = "InfluxdbWriteDataAgent"
    # JSON object of initial agent options, e.g.
    # '{"url": "http://influxdb:8086", "database": "metrics", "data": "cpu value=1"}'
    options_json: str = ""

    # ── InfluxDB write ────────────────────────────────────────────────────────
    http_timeout_seconds: float = 30.0
    # Blank influxdb_version writes through the v1 API instead of being skipped.
    legacy_v1_fallback: bool = False

    # ── Scheduling ────────────────────────────────────────────────────────────
    # Self-trigger interval for the scheduled mode; 0 disables the scheduler.
    schedule_seconds: int = 3600

    # ── Agent log / event history ─────────────────────────────────────────────
    event_store_size: int = 500
    log_store_size: int = 500

    # ── Logging ───────────────────────────────────────────────────────────────
    log_level: str = "INFO"
