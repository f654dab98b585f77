"""
Unit tests for policy documents.

Tests cover:
- Duration parsing
- YAML parsing into the policy model
- Validation failures
- Loading from disk
"""

import tempfile
from datetime import timedelta
from pathlib import Path

import pytest

from surf.errors import ConfigError, SetupError
from surf.policy import (
    Instance,
    MatchMode,
    SnapshotPolicy,
    format_duration,
    load_config,
    parse_duration,
    parse_yaml,
)

EXAMPLE = """
access_token: dop_v1_secret
droplets:
  - name: web-1
    snapshots:
      - interval: 24h
        keep: 168h
        note: daily
        poweroff: false
      - interval: 7d
        keep: 4w
        note: weekly
        poweroff: true
        match: exact
  - name: db-1
    snapshots:
      - interval: 1h30m
        keep: 3600
        note: hourly
"""


class TestParseDuration:
    """Go-style durations plus days and weeks."""

    @pytest.mark.parametrize(
        "text,expected",
        [
            ("24h", timedelta(hours=24)),
            ("1h30m", timedelta(hours=1, minutes=30)),
            ("90s", timedelta(seconds=90)),
            ("500ms", timedelta(milliseconds=500)),
            ("1.5h", timedelta(hours=1, minutes=30)),
            ("7d", timedelta(days=7)),
            ("2w", timedelta(weeks=2)),
            ("0", timedelta(0)),
            ("-5m", timedelta(minutes=-5)),
        ],
    )
    def test_valid(self, text, expected):
        assert parse_duration(text) == expected

    def test_integer_is_seconds(self):
        assert parse_duration(3600) == timedelta(hours=1)

    def test_timedelta_passthrough(self):
        assert parse_duration(timedelta(days=1)) == timedelta(days=1)

    @pytest.mark.parametrize("value", ["", "24", "h", "1x", "1h 30m", "abc", True, None, 1.5])
    def test_invalid(self, value):
        with pytest.raises(ValueError):
            parse_duration(value)

    @pytest.mark.parametrize("value", ["99999999999d", "9" * 400 + "h", 10**18])
    def test_out_of_range(self, value):
        with pytest.raises(ValueError, match="out of range"):
            parse_duration(value)

    def test_format_round_trip(self):
        value = timedelta(days=1, hours=2, minutes=3, seconds=4)

        assert format_duration(value) == "1d2h3m4s"
        assert parse_duration(format_duration(value)) == value


class TestParseYaml:
    """Policy document parsing."""

    def test_parse_example(self):
        config = parse_yaml(EXAMPLE)

        assert config.access_token == "dop_v1_secret"
        assert [i.name for i in config.instances] == ["web-1", "db-1"]

        daily, weekly = config.instances[0].policies
        assert daily == SnapshotPolicy(
            interval=timedelta(hours=24),
            keep=timedelta(days=7),
            label="daily",
            power_off=False,
        )
        assert weekly.power_off is True
        assert weekly.match is MatchMode.EXACT
        assert weekly.keep == timedelta(weeks=4)

        hourly = config.instances[1].policies[0]
        assert hourly.interval == timedelta(minutes=90)
        assert hourly.keep == timedelta(hours=1)
        assert hourly.power_off is False
        assert hourly.match is MatchMode.SUBSTRING

    def test_empty_document_is_valid(self):
        config = parse_yaml("")

        assert config.instances == []

    def test_no_droplets_is_valid(self):
        config = parse_yaml("access_token: abc\ndroplets: []\n")

        assert config.instances == []

    def test_droplet_without_policies(self):
        config = parse_yaml("droplets:\n  - name: idle\n")

        assert config.instances == [Instance(name="idle")]

    def test_malformed_yaml(self):
        with pytest.raises(ConfigError, match="could not parse config file"):
            parse_yaml("droplets: [unclosed")

    def test_document_must_be_mapping(self):
        with pytest.raises(ConfigError):
            parse_yaml("- a\n- b\n")

    def test_bad_duration(self):
        with pytest.raises(ConfigError) as exc_info:
            parse_yaml(
                "droplets:\n"
                "  - name: web-1\n"
                "    snapshots:\n"
                "      - {interval: soon, keep: 1d, note: x}\n"
            )

        assert any("interval" in e for e in exc_info.value.errors)

    def test_out_of_range_duration(self):
        with pytest.raises(ConfigError) as exc_info:
            parse_yaml(
                "droplets:\n"
                "  - name: web-1\n"
                "    snapshots:\n"
                "      - {interval: 99999999999d, keep: 1d, note: x}\n"
            )

        assert any("interval" in e for e in exc_info.value.errors)

    def test_missing_keep(self):
        with pytest.raises(ConfigError) as exc_info:
            parse_yaml("droplets:\n  - name: a\n    snapshots:\n      - {interval: 1h, note: x}\n")

        assert any("keep is required" in e for e in exc_info.value.errors)

    def test_non_positive_interval(self):
        with pytest.raises(ConfigError) as exc_info:
            parse_yaml(
                "droplets:\n  - name: a\n    snapshots:\n      - {interval: 0, keep: 1d, note: x}\n"
            )

        assert any("interval must be positive" in e for e in exc_info.value.errors)

    def test_missing_note(self):
        with pytest.raises(ConfigError) as exc_info:
            parse_yaml("droplets:\n  - name: a\n    snapshots:\n      - {interval: 1h, keep: 1d}\n")

        assert any("note is required" in e for e in exc_info.value.errors)

    def test_invalid_match_mode(self):
        with pytest.raises(ConfigError):
            parse_yaml(
                "droplets:\n  - name: a\n    snapshots:\n"
                "      - {interval: 1h, keep: 1d, note: x, match: fuzzy}\n"
            )

    def test_poweroff_must_be_bool(self):
        with pytest.raises(ConfigError):
            parse_yaml(
                "droplets:\n  - name: a\n    snapshots:\n"
                "      - {interval: 1h, keep: 1d, note: x, poweroff: sometimes}\n"
            )

    def test_duplicate_droplet_names(self):
        with pytest.raises(ConfigError) as exc_info:
            parse_yaml("droplets:\n  - name: a\n  - name: a\n")

        assert exc_info.value.errors == ["Droplet 'a' is configured more than once"]

    def test_missing_name(self):
        with pytest.raises(ConfigError):
            parse_yaml("droplets:\n  - snapshots: []\n")

    def test_to_dict_redacts_token(self):
        config = parse_yaml(EXAMPLE)

        d = config.to_dict()
        assert d["access_token"] == "***"
        assert d["droplets"][0]["snapshots"][0] == {
            "interval": "1d",
            "keep": "7d",
            "note": "daily",
            "poweroff": False,
        }


class TestLoadConfig:
    """Loading from disk."""

    @pytest.fixture
    def config_dir(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            yield Path(tmpdir)

    def test_load(self, config_dir):
        path = config_dir / "surf.yml"
        path.write_text(EXAMPLE)

        config = load_config(path)

        assert len(config.instances) == 2

    def test_missing_file(self, config_dir):
        with pytest.raises(ConfigError, match="could not open config file") as exc_info:
            load_config(config_dir / "nope.yml")

        assert isinstance(exc_info.value, SetupError)
        assert exc_info.value.path.endswith("nope.yml")

    def test_invalid_file_reports_path(self, config_dir):
        path = config_dir / "surf.yml"
        path.write_text("droplets: {")

        with pytest.raises(ConfigError) as exc_info:
            load_config(path)

        assert exc_info.value.details["path"] == str(path)
