"""Session configuration models and loaders for procshell."""

from __future__ import annotations

import json
import os
import string
import tomllib
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Mapping

from procshell.execution.sinks import OutputSink, StandardErrorSink, StandardOutputSink

DEFAULT_SHELL = "/bin/sh"
DEFAULT_TRIMMING = string.whitespace
TRIMMING_PRESETS: dict[str, str] = {
    "whitespace": string.whitespace,
    "newlines": "\r\n",
    "none": "",
}
ENVIRONMENT_MODES = ("inherit", "overlay", "exact")
CONFIG_FILE_NAMES = ("procshell.yaml", "procshell.yml", "pyproject.toml")


class ConfigError(ValueError):
    """Raised when a configuration file or value is invalid."""


@dataclass(frozen=True)
class Environment:
    """Environment variables handed to launched processes.

    Attributes:
        mode: ``inherit`` uses the host environment, ``overlay`` adds
            ``variables`` on top of it, ``exact`` uses ``variables`` only.
        variables: Variables for the ``overlay`` and ``exact`` modes.
    """

    mode: str = "inherit"
    variables: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.mode not in ENVIRONMENT_MODES:
            raise ConfigError(f"Unknown environment mode: {self.mode!r}")

    @classmethod
    def inherit(cls) -> Environment:
        return cls("inherit")

    @classmethod
    def overlay(cls, variables: Mapping[str, str]) -> Environment:
        return cls("overlay", dict(variables))

    @classmethod
    def exact(cls, variables: Mapping[str, str]) -> Environment:
        return cls("exact", dict(variables))

    def resolve(self) -> dict[str, str]:
        """Return the concrete mapping to launch a process with."""

        if self.mode == "exact":
            return dict(self.variables)
        resolved = os.environ.copy()
        if self.mode == "overlay":
            resolved.update(self.variables)
        return resolved

    def merged(self, more: Mapping[str, str]) -> Environment:
        """Return a copy with ``more`` added, later keys winning."""

        mode = "overlay" if self.mode == "inherit" else self.mode
        return Environment(mode, {**self.variables, **more})


@dataclass(frozen=True)
class SessionConfig:
    """Behavioural options threaded through every execution.

    Attributes:
        output_trimming: Characters stripped from both ends of stdout on success.
        default_shell: Shell used with ``-c`` for resolution and directory changes.
        environment: Environment handed to launched processes.
        stdout_sink: Receives live stdout chunks when ``echo_stdout`` is set.
        stderr_sink: Receives live stderr chunks when ``echo_stderr`` is set.
        echo_stdout: Whether stdout is echoed while the process runs.
        echo_stderr: Whether stderr is echoed while the process runs.
        xtrace: Whether each invocation is printed before it runs.
        trace_sink: Receives trace lines.
        encoding: Encoding used to decode captured output.
        timeout_s: Optional timeout after which the process is killed.
        replace_underscores_with_dashes: Argument formatting flag.
        replace_capitalized_underscores_with_dashes: Argument formatting flag
            for fully capitalized names such as ``SOME_ARG``.
    """

    output_trimming: str = DEFAULT_TRIMMING
    default_shell: str = DEFAULT_SHELL
    environment: Environment = field(default_factory=Environment)
    stdout_sink: OutputSink = field(default_factory=StandardOutputSink)
    stderr_sink: OutputSink = field(default_factory=StandardErrorSink)
    echo_stdout: bool = True
    echo_stderr: bool = True
    xtrace: bool = False
    trace_sink: OutputSink = field(default_factory=StandardOutputSink)
    encoding: str = "utf-8"
    timeout_s: float | None = None
    replace_underscores_with_dashes: bool = True
    replace_capitalized_underscores_with_dashes: bool = False

    def quiet(self) -> SessionConfig:
        """Return a copy that neither echoes output nor traces."""

        return replace(self, echo_stdout=False, echo_stderr=False, xtrace=False)

    def for_resolution(self) -> SessionConfig:
        """Return the quiet, host-environment copy used for path lookups."""

        return replace(self.quiet(), environment=Environment(), timeout_s=None)

    def with_environment(self, more: Mapping[str, str]) -> SessionConfig:
        """Return a copy with extra environment variables."""

        return replace(self, environment=self.environment.merged(more))

    def trim(self, text: str) -> str:
        """Strip the configured characters from both ends of ``text``."""

        if not self.output_trimming:
            return text
        return text.strip(self.output_trimming)


def load_config(path: Path | None = None) -> SessionConfig:
    """Load a session configuration from disk.

    Args:
        path: Optional path to a configuration file or directory.

    Returns:
        Parsed SessionConfig with defaults applied when no config exists.
    """

    config_path = _resolve_config_path(path)
    if config_path is None:
        return SessionConfig()

    if config_path.suffix in {".yaml", ".yml"}:
        raw_data = _load_yaml(config_path)
    elif config_path.suffix == ".toml":
        raw_data = _load_toml(config_path)
    else:
        raise ConfigError(f"Unsupported config file type: {config_path}")

    return parse_config(raw_data)


def parse_config(raw: Mapping[str, Any]) -> SessionConfig:
    """Build a SessionConfig from a raw mapping."""

    defaults = SessionConfig()
    return SessionConfig(
        output_trimming=_parse_trimming(raw.get("output_trimming", "whitespace")),
        default_shell=str(raw.get("default_shell", defaults.default_shell)),
        environment=_parse_environment(raw.get("environment")),
        echo_stdout=bool(raw.get("echo_stdout", defaults.echo_stdout)),
        echo_stderr=bool(raw.get("echo_stderr", defaults.echo_stderr)),
        xtrace=bool(raw.get("xtrace", defaults.xtrace)),
        encoding=str(raw.get("encoding", defaults.encoding)),
        timeout_s=_optional_float(raw.get("timeout_s")),
        replace_underscores_with_dashes=bool(
            raw.get("replace_underscores_with_dashes", defaults.replace_underscores_with_dashes)
        ),
        replace_capitalized_underscores_with_dashes=bool(
            raw.get(
                "replace_capitalized_underscores_with_dashes",
                defaults.replace_capitalized_underscores_with_dashes,
            )
        ),
    )


def config_to_dict(config: SessionConfig) -> dict[str, Any]:
    """Serialize the file-backed fields of a SessionConfig."""

    trimming = next(
        (name for name, chars in TRIMMING_PRESETS.items() if chars == config.output_trimming),
        config.output_trimming,
    )
    return {
        "default_shell": config.default_shell,
        "output_trimming": trimming,
        "echo_stdout": config.echo_stdout,
        "echo_stderr": config.echo_stderr,
        "xtrace": config.xtrace,
        "encoding": config.encoding,
        "timeout_s": config.timeout_s,
        "replace_underscores_with_dashes": config.replace_underscores_with_dashes,
        "replace_capitalized_underscores_with_dashes": (
            config.replace_capitalized_underscores_with_dashes
        ),
        "environment": {
            "mode": config.environment.mode,
            "variables": dict(config.environment.variables),
        },
    }


def _resolve_config_path(path: Path | None) -> Path | None:
    if path is None:
        candidate_paths = [Path(name) for name in CONFIG_FILE_NAMES]
    elif path.is_dir():
        candidate_paths = [path / name for name in CONFIG_FILE_NAMES]
    else:
        candidate_paths = [path]

    for candidate in candidate_paths:
        if candidate.exists():
            return candidate
    if path is not None and not path.is_dir():
        raise ConfigError(f"Config file not found: {path}")
    return None


def _load_toml(path: Path) -> dict[str, Any]:
    with path.open("rb") as handle:
        data = tomllib.load(handle)
    if path.name == "pyproject.toml":
        tool_config = data.get("tool", {}).get("procshell", {})
        if not isinstance(tool_config, dict):
            raise ConfigError("tool.procshell must be a mapping.")
        return tool_config
    return data


def _load_yaml(path: Path) -> dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    try:
        data = json.loads(text)
    except json.JSONDecodeError:
        data = None
    if data is not None:
        if not isinstance(data, dict):
            raise ConfigError("YAML configuration must be a mapping.")
        return data
    try:
        import yaml  # type: ignore[import-untyped]
    except ImportError as exc:
        raise ConfigError(
            "PyYAML is required to parse non-JSON YAML configuration files."
        ) from exc
    parsed = yaml.safe_load(text)
    if parsed is None:
        return {}
    if not isinstance(parsed, dict):
        raise ConfigError("YAML configuration must be a mapping.")
    return parsed


def _parse_trimming(raw: Any) -> str:
    if raw is None:
        return ""
    text = str(raw)
    return TRIMMING_PRESETS.get(text, text)


def _parse_environment(raw: Any) -> Environment:
    if raw is None:
        return Environment()
    if not isinstance(raw, dict):
        raise ConfigError("environment must be a mapping with 'mode' and 'variables'.")
    variables = raw.get("variables", {}) or {}
    if not isinstance(variables, dict):
        raise ConfigError("environment.variables must be a mapping.")
    return Environment(
        mode=str(raw.get("mode", "inherit")),
        variables={str(key): str(value) for key, value in variables.items()},
    )


def _optional_float(value: Any) -> float | None:
    if value is None:
        return None
    return float(value)
