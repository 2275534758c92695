"""Option validation and interpolation.

The host stores agent options as plain strings which may reference fields of
the triggering event (``{{ temperature }}``).  :class:`ConfigResolver` renders
those templates, validates the result and produces the immutable
:class:`~influxdb_agent.models.Configuration` consumed by the writer.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import httpx
from jinja2 import TemplateError
from jinja2.sandbox import SandboxedEnvironment

from influxdb_agent.models import Configuration, V1Target, V2Target

logger = logging.getLogger(__name__)

SUPPORTED_VERSIONS = ("v1", "v2")

RECEIVE_PERIOD_MESSAGE = (
    "Please provide 'expected_receive_period_in_days' to indicate how many days "
    "can pass before this Agent is considered to be not working"
)

INVALID_URL_MESSAGE = "url must be an http or https URL with a host"


class ConfigError(Exception):
    """Raised when agent options are missing or cannot be parsed."""

    def __init__(self, messages: list[str] | str) -> None:
        if isinstance(messages, str):
            messages = [messages]
        self.messages = list(messages)
        super().__init__("; ".join(self.messages))


def _present(value: Any) -> bool:
    return value is not None and str(value).strip() != ""


def boolify(value: Any) -> bool | None:
    """Parse a stored boolean option.

    Returns ``None`` for anything that is neither a boolean nor blank.
    """
    if value is True or value == "true":
        return True
    if value is False or value is None or value == "false" or value == "":
        return False
    return None


def valid_url(url: str) -> bool:
    """True if *url* parses as an absolute http(s) URL.

    Templated urls are checked after interpolation.
    """
    try:
        parsed = httpx.URL(url)
    except httpx.InvalidURL:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.host)


def parse_receive_period(value: Any) -> int | None:
    """Return the receive period in days, or ``None`` if it is not a positive integer."""
    try:
        days = int(str(value).strip())
    except (TypeError, ValueError):
        return None
    return days if days > 0 else None


def validate_options(options: Mapping[str, Any]) -> list[str]:
    """Return every validation error for *options* (empty list when valid)."""
    errors: list[str] = []

    if not _present(options.get("database")):
        errors.append("database is a required field")

    url = options.get("url")
    if not _present(url):
        errors.append("url is a required field")
    elif "{" not in str(url) and not valid_url(str(url)):
        errors.append(INVALID_URL_MESSAGE)

    if not _present(options.get("data")):
        errors.append("data is a required field")

    version = options.get("influxdb_version")
    if _present(version):
        if version not in SUPPORTED_VERSIONS:
            errors.append("influxdb_version must be v1 or v2")
        elif version == "v2":
            if not _present(options.get("token")):
                errors.append("token is a required field when influxdb_version is v2")
            if not _present(options.get("org")):
                errors.append("org is a required field when influxdb_version is v2")

    if "emit_events" in options and boolify(options["emit_events"]) is None:
        errors.append("if provided, emit_events must be true or false")

    if "debug" in options and boolify(options["debug"]) is None:
        errors.append("if provided, debug must be true or false")

    if parse_receive_period(options.get("expected_receive_period_in_days")) is None:
        errors.append(RECEIVE_PERIOD_MESSAGE)

    return errors


def build_configuration(
    options: Mapping[str, Any], legacy_v1_fallback: bool = False
) -> Configuration:
    """Turn already-interpolated *options* into a :class:`Configuration`.

    Raises:
        ConfigError: if the options do not pass :func:`validate_options`.
    """
    errors = validate_options(options)
    if errors:
        raise ConfigError(errors)

    version = options.get("influxdb_version") or ""
    database = str(options["database"])
    target: V1Target | V2Target | None
    if version == "v2":
        target = V2Target(bucket=database, org=str(options["org"]), token=str(options["token"]))
    elif version == "v1" or (legacy_v1_fallback and not _present(version)):
        target = V1Target(database=database)
    else:
        target = None

    return Configuration(
        url=str(options["url"]),
        data=str(options["data"]),
        target=target,
        debug=bool(boolify(options.get("debug"))),
        emit_events=bool(boolify(options.get("emit_events"))),
        expected_receive_period_in_days=parse_receive_period(
            options.get("expected_receive_period_in_days")
        ),
    )


class ConfigResolver:
    """Render stored options against an optional event and validate them."""

    def __init__(self, legacy_v1_fallback: bool = False) -> None:
        self._legacy_v1_fallback = legacy_v1_fallback
        # keep_trailing_newline: the line-protocol payload must reach InfluxDB unchanged
        self._env = SandboxedEnvironment(autoescape=False, keep_trailing_newline=True)

    def interpolate(
        self, options: Mapping[str, Any], event: Mapping[str, Any] | None = None
    ) -> dict[str, Any]:
        """Render every string option as a template with the event payload as context."""
        context = dict(event or {})
        rendered: dict[str, Any] = {}
        for key, value in options.items():
            if not isinstance(value, str) or "{" not in value:
                rendered[key] = value
                continue
            try:
                rendered[key] = self._env.from_string(value).render(context)
            except TemplateError as exc:
                raise ConfigError(f"could not interpolate {key}: {exc}") from exc
        return rendered

    def resolve(
        self, options: Mapping[str, Any], event: Mapping[str, Any] | None = None
    ) -> Configuration:
        """Interpolate, validate and build the configuration for one write.

        Raises:
            ConfigError: on template errors or invalid options.
        """
        rendered = self.interpolate(options, event)
        config = build_configuration(rendered, legacy_v1_fallback=self._legacy_v1_fallback)
        logger.debug("Resolved configuration for %s (version=%r)", config.url, config.influxdb_version)
        return config
