"""CLI entrypoints for procshell."""

from __future__ import annotations

import json
import shlex
from dataclasses import replace
from pathlib import Path
from typing import NoReturn, Optional

import typer

from procshell.config import ConfigError, Environment, SessionConfig, config_to_dict, load_config
from procshell.execution.base import ExecutionError
from procshell.execution.sinks import DiscardSink
from procshell.session import Session
from procshell.util.logging import configure_logging, get_logger

app = typer.Typer(help="Run external commands with persistent shell-like state.")

_LOGGER = get_logger("procshell.cli")
_PASSTHROUGH = {"allow_extra_args": True, "ignore_unknown_options": True}


@app.callback()
def main(
    ctx: typer.Context,
    log_level: str = typer.Option(
        "WARNING",
        "--log-level",
        help="Logging level (e.g., DEBUG, INFO, WARNING).",
    ),
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to a procshell.yaml or pyproject.toml file.",
    ),
) -> None:
    """Configure CLI-level options."""

    configure_logging(log_level)
    ctx.obj = config_path


@app.command()
def init(workspace: Path = typer.Argument(Path("."))) -> None:
    """Write a default procshell.yaml into a directory."""

    config_path = workspace.resolve() / "procshell.yaml"
    if config_path.exists():
        typer.echo(f"Error: Config file already exists at {config_path}.")
        raise typer.Exit(code=1)
    config_path.write_text(json.dumps(config_to_dict(SessionConfig()), indent=2), encoding="utf-8")
    _LOGGER.info("Initialized configuration at %s", config_path)
    typer.echo(f"Created configuration at {config_path}")


@app.command()
def which(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Command name to resolve."),
) -> None:
    """Print the executable path a command name resolves to."""

    session = Session(_load(ctx))
    try:
        typer.echo(session.resolve(name))
    except ExecutionError as exc:
        _fail(exc)


@app.command("run", context_settings=_PASSTHROUGH)
def run_command(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Command name or path to run."),
    cwd: Optional[Path] = typer.Option(None, "--cwd", help="Directory to run in."),
    env: list[str] = typer.Option([], "--env", "-e", help="Environment variable as KEY=VALUE."),
    exact_env: bool = typer.Option(
        False, "--exact-env", help="Use only the --env variables as the environment."
    ),
    trace: bool = typer.Option(False, "--trace", help="Print the command before running it."),
    stream: bool = typer.Option(
        False, "--stream", "-s", help="Echo output live instead of printing it at the end."
    ),
    timeout_s: Optional[float] = typer.Option(None, "--timeout", help="Timeout in seconds."),
) -> None:
    """Run one command and print its trimmed output."""

    config = _load(ctx)
    variables = _parse_env(env)
    if exact_env:
        config = replace(config, environment=Environment.exact(variables))
    elif variables:
        config = config.with_environment(variables)
    config = replace(
        config,
        xtrace=trace or config.xtrace,
        timeout_s=timeout_s or config.timeout_s,
        echo_stdout=stream,
        echo_stderr=stream,
    )
    session = Session(config, working_directory=cwd)

    try:
        output = session.run(name, *ctx.args)
    except ExecutionError as exc:
        _fail(exc, show_output=not stream)
    if output and not stream:
        typer.echo(output)


@app.command()
def script(
    ctx: typer.Context,
    path: Path = typer.Argument(..., help="File with one command per line."),
    cwd: Optional[Path] = typer.Option(None, "--cwd", help="Directory to start in."),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Do not echo command output."),
) -> None:
    """Run commands from a file, one per line, in a single session.

    Lines are split like shell words; blank lines and lines starting with
    ``#`` are skipped. ``cd`` changes the directory for the following lines.
    """

    config = _load(ctx)
    if quiet:
        config = replace(config, stdout_sink=DiscardSink(), stderr_sink=DiscardSink())
    session = Session(config, working_directory=cwd)

    for line_number, line in enumerate(path.read_text(encoding="utf-8").splitlines(), start=1):
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        try:
            words = shlex.split(stripped)
        except ValueError as exc:
            typer.echo(f"Error: {path}:{line_number}: {exc}", err=True)
            raise typer.Exit(code=2) from exc
        try:
            session.run(words[0], *words[1:])
        except ExecutionError as exc:
            typer.echo(f"Error: {path}:{line_number}: {exc}", err=True)
            _fail(exc, show_output=quiet)


def _load(ctx: typer.Context) -> SessionConfig:
    try:
        return load_config(ctx.obj)
    except ConfigError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from exc


def _parse_env(pairs: list[str]) -> dict[str, str]:
    variables: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise typer.BadParameter(f"Expected KEY=VALUE, got {pair!r}", param_hint="--env")
        variables[key] = value
    return variables


def _fail(exc: ExecutionError, *, show_output: bool = True) -> NoReturn:
    if show_output and exc.stderr:
        typer.echo(exc.stderr.rstrip("\n"), err=True)
    typer.echo(f"Error: {exc}", err=True)
    code = exc.exit_code if 0 < exc.exit_code < 256 else 1
    raise typer.Exit(code=code) from exc


if __name__ == "__main__":
    app()
