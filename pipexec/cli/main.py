"""pipexec CLI - Main entrypoint."""

from __future__ import annotations

import shlex
import sys
from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape

from pipexec.command import command, look_path, run
from pipexec.config import PipexecConfig, load_config
from pipexec.exceptions import ExecutableNotFoundError, ExitError, PipexecError
from pipexec.logging import LoguruContextLogger, configure_logging
from pipexec.options import (
    Option,
    pipe,
    with_args,
    with_envs,
    with_logger,
    with_stderr,
    with_stdin,
    with_stdout,
    with_tracer,
)
from pipexec.tracing import configure_tracing, get_tracer

app = typer.Typer(
    name="pipexec",
    help="Run commands and pipelines with tracing and structured logging.",
    no_args_is_help=True,
    pretty_exceptions_enable=False,
)

console = Console(soft_wrap=True, highlight=False)
err_console = Console(stderr=True, soft_wrap=True, highlight=False)

_EXTRA_ARGS = {"allow_extra_args": True, "ignore_unknown_options": True}

# Shells report a missing command with 127
EXIT_NOT_FOUND = 127


def _parse_env(entries: list[str] | None) -> dict[str, str]:
    envs: dict[str, str] = {}
    for entry in entries or []:
        key, sep, value = entry.partition("=")
        if not sep or not key:
            raise typer.BadParameter(f"expected KEY=VALUE, got {entry!r}", param_hint="--env")
        envs[key] = value
    return envs


def _build_options(
    args: list[str] | None, pipes: list[str] | None, env: list[str] | None
) -> list[Option]:
    options: list[Option] = [with_args(*(args or [])), with_envs(_parse_env(env))]
    for stage in pipes or []:
        name, *stage_args = shlex.split(stage)
        options.append(pipe(name, *stage_args))
    return options


def _configure(config: PipexecConfig) -> None:
    configure_logging(
        level=config.logging.level,
        format=config.logging.format,
        output_file=config.logging.output_file,
        use_color=config.logging.use_color,
        include_timestamp=config.logging.include_timestamp,
    )


@app.command("run", context_settings=_EXTRA_ARGS)
def run_command(
    name: str = typer.Argument(..., help="Command to run"),
    args: list[str] | None = typer.Argument(None, help="Arguments for the command"),
    pipes: list[str] | None = typer.Option(
        None, "--pipe", "-p", help='Pipe into another command, e.g. --pipe "grep -v foo"'
    ),
    env: list[str] | None = typer.Option(None, "--env", "-e", help="Extra KEY=VALUE variable"),
    config_path: Path | None = typer.Option(None, "--config", help="Path to a TOML config file"),
) -> None:
    """Run a command (or pipeline) with this process's stdin, stdout and stderr."""
    options = _build_options(args, pipes, env)
    try:
        config = load_config(config_path)
        _configure(config)
        provider = configure_tracing(config.tracing)
    except PipexecError as e:
        err_console.print(f"[red]{escape(str(e))}[/red]", markup=True)
        raise typer.Exit(code=1) from e

    options += [
        with_stdin(sys.stdin),
        with_stdout(sys.stdout),
        with_stderr(sys.stderr),
        with_tracer(get_tracer(provider)),
        with_logger(LoguruContextLogger()),
    ]

    try:
        run(name, *options)
    except ExecutableNotFoundError as e:
        err_console.print(f"[red]{escape(str(e))}[/red]", markup=True)
        raise typer.Exit(code=EXIT_NOT_FOUND) from e
    except ExitError as e:
        failed = escape(str(e.cmd or name))
        err_console.print(f"[red]{failed}: {escape(str(e))}[/red]", markup=True)
        raise typer.Exit(code=e.exit_code if e.exit_code > 0 else 1) from e
    except PipexecError as e:
        err_console.print(f"[red]{escape(str(e))}[/red]", markup=True)
        raise typer.Exit(code=1) from e
    finally:
        provider.shutdown()


@app.command("render", context_settings=_EXTRA_ARGS)
def render_command(
    name: str = typer.Argument(..., help="Command to render"),
    args: list[str] | None = typer.Argument(None, help="Arguments for the command"),
    pipes: list[str] | None = typer.Option(None, "--pipe", "-p", help="Pipe into another command"),
) -> None:
    """Print how a pipeline resolves, without running it."""
    cmd = command(name, *_build_options(args, pipes, None))
    console.print(str(cmd), markup=False)
    if cmd.err is not None:
        err_console.print(f"[yellow]{escape(str(cmd.err))}[/yellow]", markup=True)


@app.command("which")
def which_command(name: str = typer.Argument(..., help="Executable to look up")) -> None:
    """Print the path an executable resolves to."""
    try:
        console.print(look_path(name), markup=False)
    except ExecutableNotFoundError as e:
        err_console.print(f"[red]{escape(str(e))}[/red]", markup=True)
        raise typer.Exit(code=1) from e


def main() -> None:
    """Console script entry point."""
    app()
