"""Configuration loading for the exporter."""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass, field
from datetime import timedelta
from pathlib import Path
from typing import Any

import yaml

DEFAULT_API_URL = "https://api.github.com"
DEFAULT_TIMEFRAME = "168h"
DEFAULT_SCRAPE_TIME = "30m"
DEFAULT_BIND = ":8080"

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|h|m|s)")
_DURATION_UNITS = {
    "h": 3600.0,
    "m": 60.0,
    "s": 1.0,
    "ms": 0.001,
}


class ConfigError(Exception):
    """Raised when configuration is invalid or missing."""


def parse_duration(value: str | int | float | timedelta) -> timedelta:
    """Parse a Go-style duration string such as ``168h``, ``1h30m`` or ``45s``.

    Plain numbers are taken as seconds.

    Raises:
        ConfigError: If the value cannot be parsed.
    """
    if isinstance(value, timedelta):
        return value
    if isinstance(value, (int, float)):
        return timedelta(seconds=value)

    text = value.strip()
    if not text:
        raise ConfigError("Empty duration")
    if re.fullmatch(r"\d+(?:\.\d+)?", text):
        return timedelta(seconds=float(text))

    pos = 0
    seconds = 0.0
    for match in _DURATION_PART.finditer(text):
        if match.start() != pos:
            break
        seconds += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        pos = match.end()
    if pos != len(text):
        raise ConfigError(f"Invalid duration: {value!r}")
    return timedelta(seconds=seconds)


def parse_list(value: str | list[str] | tuple[str, ...] | None) -> list[str]:
    """Split a space or comma separated option value into a list."""
    if value is None:
        return []
    if isinstance(value, str):
        value = [value]
    items: list[str] = []
    for entry in value:
        items.extend(part for part in re.split(r"[\s,]+", entry) if part)
    return items


def parse_bind(bind: str) -> tuple[str, int]:
    """Split a ``host:port`` bind address; an empty host means all interfaces."""
    host, sep, port = bind.rpartition(":")
    if not sep or not port.isdigit():
        raise ConfigError(f"Invalid bind address: {bind!r}")
    return host or "0.0.0.0", int(port)  # noqa: S104


@dataclass
class Settings:
    """Exporter settings.

    Either ``token`` or the full app triple (``app_id``,
    ``app_installation_id``, ``app_private_key_file``) must be set.
    """

    organization: str
    enterprise_url: str = ""
    token: str = ""
    app_id: int | None = None
    app_installation_id: int | None = None
    app_private_key_file: str | None = None
    workflows_timeframe: timedelta = field(
        default_factory=lambda: parse_duration(DEFAULT_TIMEFRAME)
    )
    custom_properties: list[str] = field(default_factory=list)
    scrape_time: timedelta = field(default_factory=lambda: parse_duration(DEFAULT_SCRAPE_TIME))
    server_bind: str = DEFAULT_BIND
    log_debug: bool = False
    log_json: bool = False
    log_dir: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Settings:
        """Create settings from a flat dictionary.

        Keys match the dataclass fields. Duration and list fields accept the
        same string forms as the command line.

        Raises:
            ConfigError: If a value is invalid.
        """
        unknown = sorted(set(data) - set(cls.__dataclass_fields__))
        if unknown:
            raise ConfigError(f"Unknown settings: {', '.join(unknown)}")

        values = dict(data)
        for key in ("workflows_timeframe", "scrape_time"):
            if values.get(key) is not None:
                values[key] = parse_duration(values[key])
            else:
                values.pop(key, None)
        for key in ("app_id", "app_installation_id"):
            if values.get(key) is not None:
                try:
                    values[key] = int(values[key])
                except (TypeError, ValueError) as e:
                    raise ConfigError(f"{key} must be an integer, got {values[key]!r}") from e
        if "custom_properties" in values:
            values["custom_properties"] = parse_list(values["custom_properties"])
        if "organization" not in values:
            values["organization"] = ""

        return cls(**values)

    @property
    def api_url(self) -> str:
        """REST API base URL, pointing at ``/api/v3`` for GitHub Enterprise."""
        if not self.enterprise_url:
            return DEFAULT_API_URL
        url = self.enterprise_url.rstrip("/")
        if not url.endswith("/api/v3"):
            url += "/api/v3"
        return url

    @property
    def uses_app_auth(self) -> bool:
        """True when no token is set and a GitHub App is configured instead."""
        return not self.token and self.app_id is not None

    def validate(self) -> None:
        """Check that the settings describe a usable exporter.

        Raises:
            ConfigError: If settings are incomplete or inconsistent.
        """
        if not self.organization:
            raise ConfigError("GitHub organization is required")

        if not self.token:
            if self.app_id is None:
                raise ConfigError(
                    "No GitHub auth specified, either use token or app based auth"
                )
            if self.app_installation_id is None:
                raise ConfigError("GitHub app installation ID not specified")
            if not self.app_private_key_file:
                raise ConfigError("GitHub app private key file not specified")

        if self.workflows_timeframe <= timedelta(0):
            raise ConfigError("Workflow timeframe must be positive")
        if self.scrape_time <= timedelta(0):
            raise ConfigError("Scrape time must be positive")

        parse_bind(self.server_bind)

    def to_log_dict(self) -> dict[str, Any]:
        """Settings as a dictionary safe for logging (secrets redacted)."""
        data = asdict(self)
        if data["token"]:
            data["token"] = "***"
        data["workflows_timeframe"] = str(self.workflows_timeframe)
        data["scrape_time"] = str(self.scrape_time)
        return data


def load_config(config_path: Path | str) -> dict[str, Any]:
    """Load exporter settings from a YAML file.

    The file is a flat mapping of setting names to values. The result is
    meant to be merged with command line options before building
    :class:`Settings`.

    Raises:
        ConfigError: If file doesn't exist or is invalid.
    """
    config_path = Path(config_path)

    if not config_path.exists():
        raise ConfigError(f"Configuration file not found: {config_path}")

    try:
        with open(config_path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration must be a YAML mapping, got {type(data).__name__}")

    return data
