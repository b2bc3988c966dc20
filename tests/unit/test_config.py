"""Unit tests for exporter configuration."""

from datetime import timedelta
from pathlib import Path

import pytest

from workflow_exporter.config import (
    ConfigError,
    Settings,
    load_config,
    parse_bind,
    parse_duration,
    parse_list,
)


@pytest.mark.unit
class TestParseDuration:
    """Tests for parse_duration."""

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("168h", timedelta(hours=168)),
            ("30m", timedelta(minutes=30)),
            ("1h30m", timedelta(hours=1, minutes=30)),
            ("45s", timedelta(seconds=45)),
            ("1.5h", timedelta(minutes=90)),
            ("500ms", timedelta(milliseconds=500)),
            ("120", timedelta(seconds=120)),
        ],
    )
    def test_valid_durations(self, text: str, expected: timedelta) -> None:
        """Go-style duration strings are parsed."""
        assert parse_duration(text) == expected

    @pytest.mark.parametrize("text", ["", "abc", "10x", "h10", "5m junk"])
    def test_invalid_durations(self, text: str) -> None:
        """Malformed durations raise ConfigError."""
        with pytest.raises(ConfigError):
            parse_duration(text)

    def test_timedelta_passthrough(self) -> None:
        """A timedelta is returned unchanged."""
        assert parse_duration(timedelta(minutes=5)) == timedelta(minutes=5)


@pytest.mark.unit
class TestParseHelpers:
    """Tests for parse_list and parse_bind."""

    def test_parse_list_splits_spaces_and_commas(self) -> None:
        """Space and comma separated entries are split."""
        assert parse_list(["team owner", "tier,env"]) == ["team", "owner", "tier", "env"]

    def test_parse_list_none(self) -> None:
        """None gives an empty list."""
        assert parse_list(None) == []

    def test_parse_bind_without_host(self) -> None:
        """':8080' binds all interfaces."""
        assert parse_bind(":8080") == ("0.0.0.0", 8080)

    def test_parse_bind_with_host(self) -> None:
        """Host and port are split."""
        assert parse_bind("127.0.0.1:9000") == ("127.0.0.1", 9000)

    def test_parse_bind_invalid(self) -> None:
        """Missing port raises ConfigError."""
        with pytest.raises(ConfigError):
            parse_bind("localhost")


@pytest.mark.unit
class TestSettings:
    """Tests for Settings."""

    def test_defaults(self) -> None:
        """Defaults match the documented values."""
        settings = Settings(organization="acme", token="t")

        assert settings.workflows_timeframe == timedelta(hours=168)
        assert settings.scrape_time == timedelta(minutes=30)
        assert settings.server_bind == ":8080"
        assert settings.api_url == "https://api.github.com"

    def test_from_dict_parses_strings(self) -> None:
        """Durations, lists and app IDs are converted."""
        settings = Settings.from_dict(
            {
                "organization": "acme",
                "workflows_timeframe": "24h",
                "scrape_time": "5m",
                "custom_properties": "team,tier",
                "app_id": "12",
                "app_installation_id": "34",
                "app_private_key_file": "key.pem",
            }
        )

        assert settings.workflows_timeframe == timedelta(hours=24)
        assert settings.scrape_time == timedelta(minutes=5)
        assert settings.custom_properties == ["team", "tier"]
        assert settings.app_id == 12
        assert settings.app_installation_id == 34

    def test_from_dict_rejects_unknown_keys(self) -> None:
        """Unknown settings are reported."""
        with pytest.raises(ConfigError, match="Unknown settings: bogus"):
            Settings.from_dict({"organization": "acme", "bogus": 1})

    def test_enterprise_api_url(self) -> None:
        """Enterprise URL gets the /api/v3 suffix once."""
        assert Settings(organization="acme", enterprise_url="https://ghe.example.com/").api_url == (
            "https://ghe.example.com/api/v3"
        )
        assert Settings(
            organization="acme", enterprise_url="https://ghe.example.com/api/v3"
        ).api_url == ("https://ghe.example.com/api/v3")

    def test_validate_requires_organization(self) -> None:
        """Organization is mandatory."""
        with pytest.raises(ConfigError, match="organization"):
            Settings(organization="", token="t").validate()

    def test_validate_requires_auth(self) -> None:
        """Either token or app auth is needed."""
        with pytest.raises(ConfigError, match="No GitHub auth"):
            Settings(organization="acme").validate()

    def test_validate_requires_full_app_triple(self) -> None:
        """App auth needs installation ID and key file."""
        with pytest.raises(ConfigError, match="installation ID"):
            Settings(organization="acme", app_id=1).validate()
        with pytest.raises(ConfigError, match="private key"):
            Settings(organization="acme", app_id=1, app_installation_id=2).validate()

    def test_validate_app_auth(self) -> None:
        """Complete app credentials are valid."""
        settings = Settings(
            organization="acme", app_id=1, app_installation_id=2, app_private_key_file="k.pem"
        )
        settings.validate()

        assert settings.uses_app_auth

    def test_validate_rejects_non_positive_durations(self) -> None:
        """Zero timeframe is rejected."""
        with pytest.raises(ConfigError, match="timeframe"):
            Settings(organization="acme", token="t", workflows_timeframe=timedelta(0)).validate()

    def test_log_dict_redacts_token(self) -> None:
        """Token never appears in the loggable settings."""
        data = Settings(organization="acme", token="ghp_secret").to_log_dict()

        assert data["token"] == "***"
        assert data["workflows_timeframe"] == "7 days, 0:00:00"


@pytest.mark.unit
class TestLoadConfig:
    """Tests for load_config."""

    def test_load_yaml(self, tmp_path: Path) -> None:
        """A flat YAML mapping is returned."""
        path = tmp_path / "exporter.yaml"
        path.write_text("organization: acme\nscrape_time: 10m\n")

        assert load_config(path) == {"organization": "acme", "scrape_time": "10m"}

    def test_empty_file(self, tmp_path: Path) -> None:
        """An empty file gives no settings."""
        path = tmp_path / "exporter.yaml"
        path.write_text("")

        assert load_config(path) == {}

    def test_missing_file(self, tmp_path: Path) -> None:
        """Missing file raises ConfigError."""
        with pytest.raises(ConfigError, match="not found"):
            load_config(tmp_path / "missing.yaml")

    def test_non_mapping(self, tmp_path: Path) -> None:
        """A YAML list is rejected."""
        path = tmp_path / "exporter.yaml"
        path.write_text("- a\n- b\n")

        with pytest.raises(ConfigError, match="mapping"):
            load_config(path)
