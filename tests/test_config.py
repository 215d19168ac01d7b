from __future__ import annotations

import string
from pathlib import Path

import pytest

from procshell.config import (
    ConfigError,
    Environment,
    SessionConfig,
    config_to_dict,
    load_config,
    parse_config,
)
from procshell.execution.sinks import StandardErrorSink, StandardOutputSink


def test_session_config_defaults() -> None:
    config = SessionConfig()

    assert config.default_shell == "/bin/sh"
    assert config.output_trimming == string.whitespace
    assert config.environment.mode == "inherit"
    assert config.echo_stdout is True
    assert config.echo_stderr is True
    assert config.xtrace is False
    assert config.timeout_s is None
    assert isinstance(config.stdout_sink, StandardOutputSink)
    assert isinstance(config.stderr_sink, StandardErrorSink)


def test_quiet_and_resolution_copies_leave_original_untouched() -> None:
    config = SessionConfig(xtrace=True, environment=Environment.exact({"A": "1"}), timeout_s=3)

    quiet = config.quiet()
    lookup = config.for_resolution()

    assert (quiet.echo_stdout, quiet.echo_stderr, quiet.xtrace) == (False, False, False)
    assert quiet.environment == config.environment
    assert lookup.environment.mode == "inherit"
    assert lookup.timeout_s is None
    assert config.xtrace is True


def test_environment_modes_resolve(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("PROCSHELL_CONFIG_TEST", "host")

    inherited = Environment.inherit().resolve()
    overlaid = Environment.overlay({"PROCSHELL_CONFIG_TEST": "over", "NEW": "1"}).resolve()
    exact = Environment.exact({"ONLY": "1"}).resolve()

    assert inherited["PROCSHELL_CONFIG_TEST"] == "host"
    assert overlaid["PROCSHELL_CONFIG_TEST"] == "over"
    assert overlaid["NEW"] == "1"
    assert exact == {"ONLY": "1"}


def test_environment_merge_keeps_mode_and_later_keys_win() -> None:
    exact = Environment.exact({"A": "1", "NO": "old"}).merged({"NO": "2", "YES": "2"})
    inherited = Environment.inherit().merged({"B": "2"})

    assert exact == Environment("exact", {"A": "1", "NO": "2", "YES": "2"})
    assert inherited == Environment("overlay", {"B": "2"})


def test_unknown_environment_mode_is_rejected() -> None:
    with pytest.raises(ConfigError):
        Environment("sometimes")


def test_trim_uses_configured_characters() -> None:
    assert SessionConfig().trim("  value\n") == "value"
    assert SessionConfig(output_trimming="\n").trim("  value\n") == "  value"
    assert SessionConfig(output_trimming="").trim("value\n") == "value\n"


def test_load_config_from_pyproject(tmp_path: Path) -> None:
    pyproject = tmp_path / "pyproject.toml"
    pyproject.write_text(
        """
[tool.procshell]
default_shell = "/bin/bash"
output_trimming = "newlines"
xtrace = true
timeout_s = 12

[tool.procshell.environment]
mode = "exact"
variables = { HELLO = "WORLD", VALUE = 1 }
""",
        encoding="utf-8",
    )

    config = load_config(tmp_path)

    assert config.default_shell == "/bin/bash"
    assert config.output_trimming == "\r\n"
    assert config.xtrace is True
    assert config.timeout_s == 12.0
    assert config.environment == Environment.exact({"HELLO": "WORLD", "VALUE": "1"})


def test_load_config_from_json_yaml(tmp_path: Path) -> None:
    config_path = tmp_path / "procshell.yaml"
    config_path.write_text(
        '{"echo_stdout": false, "output_trimming": "none", '
        '"environment": {"mode": "overlay", "variables": {"X": "y"}}}',
        encoding="utf-8",
    )

    config = load_config(config_path)

    assert config.echo_stdout is False
    assert config.output_trimming == ""
    assert config.environment == Environment.overlay({"X": "y"})


def test_load_config_from_non_json_yaml(tmp_path: Path) -> None:
    pytest.importorskip("yaml")
    config_path = tmp_path / "procshell.yml"
    config_path.write_text(
        """
default_shell: /bin/sh
echo_stderr: false
replace_underscores_with_dashes: false
environment:
  mode: overlay
  variables:
    PYTHONUNBUFFERED: 1
""",
        encoding="utf-8",
    )

    config = load_config(tmp_path)

    assert config.echo_stderr is False
    assert config.replace_underscores_with_dashes is False
    assert config.environment.variables == {"PYTHONUNBUFFERED": "1"}


def test_load_config_without_file_returns_defaults(tmp_path: Path) -> None:
    config = load_config(tmp_path)

    assert config_to_dict(config) == config_to_dict(SessionConfig())


def test_load_config_missing_explicit_file_raises(tmp_path: Path) -> None:
    with pytest.raises(ConfigError):
        load_config(tmp_path / "nope.yaml")


def test_invalid_environment_section_raises() -> None:
    with pytest.raises(ConfigError):
        parse_config({"environment": ["not", "a", "mapping"]})


def test_config_round_trips_through_dict() -> None:
    config = SessionConfig(
        output_trimming="\n",
        xtrace=True,
        environment=Environment.overlay({"A": "1"}),
    )

    data = config_to_dict(config)
    restored = parse_config(data)

    assert data["environment"] == {"mode": "overlay", "variables": {"A": "1"}}
    assert restored.output_trimming == "\n"
    assert restored.xtrace is True
    assert restored.environment == config.environment
