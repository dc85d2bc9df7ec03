"""Tests for the pipexec command line."""

import shutil

import pytest
from loguru import logger
from typer.testing import CliRunner

import pipexec.logging as logging_module
from pipexec.cli.main import EXIT_NOT_FOUND, app

MISSING = "pipexec-command-that-does-not-exist"


@pytest.fixture
def runner():
    """Fixture providing a Typer CLI test runner."""
    return CliRunner()


@pytest.fixture(autouse=True)
def reset_logging(monkeypatch):
    """Handlers added during a command point at the runner's streams."""
    monkeypatch.delenv("PIPEXEC_CONFIG_PATH", raising=False)
    yield
    for handler_id in logging_module._HANDLER_IDS:
        logger.remove(handler_id)
    logging_module._HANDLER_IDS.clear()
    logging_module._CURRENT_CONFIG = None


class TestRun:
    """The run command."""

    def test_run(self, runner):
        result = runner.invoke(app, ["run", "echo", "hello"])

        assert result.exit_code == 0
        assert result.stdout == "hello\n"

    def test_pipe(self, runner):
        result = runner.invoke(app, ["run", "echo", "hello world", "--pipe", "tr a-z A-Z"])

        assert result.exit_code == 0
        assert result.stdout == "HELLO WORLD\n"

    def test_stdin(self, runner):
        result = runner.invoke(app, ["run", "cat", "-p", "grep b"], input="a\nb\n")

        assert result.exit_code == 0
        assert result.stdout == "b\n"

    def test_env_and_unknown_options(self, runner):
        result = runner.invoke(
            app, ["run", "sh", "-c", "echo $GREETING", "--env", "GREETING=hi"]
        )

        assert result.exit_code == 0
        assert result.stdout == "hi\n"

    def test_invalid_env(self, runner):
        result = runner.invoke(app, ["run", "true", "--env", "novalue"])

        assert result.exit_code == 2

    def test_not_found(self, runner):
        result = runner.invoke(app, ["run", MISSING])

        assert result.exit_code == EXIT_NOT_FOUND
        assert "executable file not found" in result.output

    def test_exit_status_is_forwarded(self, runner, fake_binary):
        fake_binary("fail", "echo oops >&2\nexit 3")

        result = runner.invoke(app, ["run", "fail"])

        assert result.exit_code == 3
        assert "oops" in result.output
        assert "exit status 3" in result.output

    def test_missing_config(self, runner, tmp_path):
        result = runner.invoke(app, ["run", "true", "--config", str(tmp_path / "nope.toml")])

        assert result.exit_code == 1
        assert "file not found" in result.output


class TestRender:
    """The render command."""

    def test_render_pipeline(self, runner):
        result = runner.invoke(app, ["render", "echo", "hello", "--pipe", "grep -o hello"])

        assert result.exit_code == 0
        assert result.stdout == f"{shutil.which('echo')} hello | {shutil.which('grep')} -o hello\n"

    def test_render_unresolved(self, runner):
        result = runner.invoke(app, ["render", MISSING])

        assert result.exit_code == 0
        assert MISSING in result.stdout
        assert "executable file not found" in result.output


class TestWhich:
    """The which command."""

    def test_found(self, runner):
        result = runner.invoke(app, ["which", "sh"])

        assert result.exit_code == 0
        assert result.stdout.strip() == shutil.which("sh")

    def test_not_found(self, runner):
        result = runner.invoke(app, ["which", MISSING])

        assert result.exit_code == 1
