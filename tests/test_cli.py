from __future__ import annotations

import json
from pathlib import Path

from typer.testing import CliRunner

from procshell.cli.main import app


def test_cli_init_creates_config_file(tmp_path: Path) -> None:
    runner = CliRunner()

    result = runner.invoke(app, ["init", str(tmp_path)])

    assert result.exit_code == 0
    config_path = tmp_path / "procshell.yaml"
    assert config_path.exists()
    data = json.loads(config_path.read_text(encoding="utf-8"))
    assert data["default_shell"] == "/bin/sh"
    assert data["environment"]["mode"] == "inherit"


def test_cli_init_refuses_to_overwrite(tmp_path: Path) -> None:
    runner = CliRunner()
    (tmp_path / "procshell.yaml").write_text("{}", encoding="utf-8")

    result = runner.invoke(app, ["init", str(tmp_path)])

    assert result.exit_code == 1
    assert "already exists" in result.output


def test_cli_which_prints_absolute_path() -> None:
    runner = CliRunner()

    result = runner.invoke(app, ["which", "sh"])

    assert result.exit_code == 0
    assert result.output.strip().startswith("/")
    assert result.output.strip().endswith("/sh")


def test_cli_which_unknown_command_exits_127() -> None:
    runner = CliRunner()

    result = runner.invoke(app, ["which", "definitely-not-a-command-procshell"])

    assert result.exit_code == 127
    assert "Unable to locate command" in result.output


def test_cli_run_prints_trimmed_output(tmp_path: Path) -> None:
    runner = CliRunner()

    result = runner.invoke(app, ["run", "--cwd", str(tmp_path), "pwd"])

    assert result.exit_code == 0
    assert result.output == f"{tmp_path}\n"


def test_cli_run_with_exact_environment() -> None:
    runner = CliRunner()

    result = runner.invoke(app, ["run", "--exact-env", "-e", "A=1", "-e", "B=2", "env"])

    assert result.exit_code == 0
    assert sorted(result.output.splitlines()) == ["A=1", "B=2"]


def test_cli_run_failure_reports_stderr_and_exit_code() -> None:
    runner = CliRunner()

    result = runner.invoke(app, ["run", "--", "sh", "-c", "echo oops >&2; exit 3"])

    assert result.exit_code == 3
    assert "oops" in result.output
    assert "exited with error code 3" in result.output


def test_cli_run_rejects_malformed_env() -> None:
    runner = CliRunner()

    result = runner.invoke(app, ["run", "-e", "NOVALUE", "true"])

    assert result.exit_code != 0


def test_cli_script_keeps_directory_between_lines(tmp_path: Path) -> None:
    runner = CliRunner()
    script = tmp_path / "steps.txt"
    script.write_text(
        "# build a directory and a file inside it\n"
        "mkdir sub\n"
        "\n"
        "cd sub\n"
        "touch made.txt\n",
        encoding="utf-8",
    )

    result = runner.invoke(app, ["script", "--quiet", "--cwd", str(tmp_path), str(script)])

    assert result.exit_code == 0
    assert (tmp_path / "sub" / "made.txt").exists()


def test_cli_script_stops_at_first_failure(tmp_path: Path) -> None:
    runner = CliRunner()
    script = tmp_path / "steps.txt"
    script.write_text("cd missing-directory\ntouch never.txt\n", encoding="utf-8")

    result = runner.invoke(app, ["script", "--quiet", "--cwd", str(tmp_path), str(script)])

    assert result.exit_code != 0
    assert f"{script}:1" in result.output
    assert not (tmp_path / "never.txt").exists()


def test_cli_uses_config_file(tmp_path: Path) -> None:
    runner = CliRunner()
    config_path = tmp_path / "procshell.yaml"
    config_path.write_text(
        '{"environment": {"mode": "exact", "variables": {"FROM_CONFIG": "yes"}}}',
        encoding="utf-8",
    )

    result = runner.invoke(app, ["--config", str(config_path), "run", "env"])

    assert result.exit_code == 0
    assert result.output.strip() == "FROM_CONFIG=yes"


def test_cli_run_stream_echoes_output_live() -> None:
    runner = CliRunner()

    result = runner.invoke(app, ["run", "--stream", "--", "sh", "-c", "printf 'live\\n'"])

    assert result.exit_code == 0
    assert result.output == "live\n"


def test_cli_run_trace_prints_invocation() -> None:
    runner = CliRunner()

    result = runner.invoke(app, ["run", "--trace", "--", "echo", "hi"])

    assert result.exit_code == 0
    lines = result.output.splitlines()
    assert lines[0].startswith("[shell] /")
    assert lines[0].endswith("echo hi")
    assert lines[-1] == "hi"


def test_cli_run_timeout_stops_long_command() -> None:
    runner = CliRunner()

    result = runner.invoke(app, ["run", "--timeout", "1", "--", "sh", "-c", "sleep 30; echo done"])

    assert result.exit_code == 1
    assert "timed out after 1s" in result.output
    assert "done" not in result.output
