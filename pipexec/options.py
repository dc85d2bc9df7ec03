"""Options that configure a :class:`~pipexec.command.Cmd`.

An option is a callable applied to the descriptor under construction.
Options run in the order given, so later options override earlier ones.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any

from pipexec.command import ArgsRedaction, Cmd, command_context

if TYPE_CHECKING:
    from opentelemetry.trace import Tracer

    from pipexec.ports import ContextLogger, ProcessFactory

Option = Callable[[Cmd], None]


def pipe(name: str, *args: str) -> Option:
    """Pipe the output to another command.

    Repeated ``pipe`` options extend the chain: each one appends a stage
    after the current last stage.
    """

    def apply(cmd: Cmd) -> None:
        if cmd.next is None:
            cmd.next = command_context(cmd._context, name, with_args(*args))
        else:
            pipe(name, *args)(cmd.next)

    return apply


def with_args(*args: str) -> Option:
    """Set the arguments, keeping the resolved path as argument zero."""

    def apply(cmd: Cmd) -> None:
        cmd.args = [cmd.path, *args]

    return apply


def append_args(*args: str) -> Option:
    """Append arguments to the current argument list."""

    def apply(cmd: Cmd) -> None:
        cmd.args = [*cmd.args, *args]

    return apply


def with_env(key: str, value: str) -> Option:
    """Add an environment variable. Existing entries for ``key`` are not removed."""

    def apply(cmd: Cmd) -> None:
        cmd.env.append(f"{key}={value}")

    return apply


def with_envs(envs: Mapping[str, str]) -> Option:
    """Add every entry of ``envs`` as an environment variable."""

    def apply(cmd: Cmd) -> None:
        cmd.env.extend(f"{key}={value}" for key, value in envs.items())

    return apply


def with_stdin(stdin: Any) -> Option:
    def apply(cmd: Cmd) -> None:
        cmd.stdin = stdin

    return apply


def with_stdout(stdout: Any) -> Option:
    def apply(cmd: Cmd) -> None:
        cmd.stdout = stdout

    return apply


def with_stderr(stderr: Any) -> Option:
    def apply(cmd: Cmd) -> None:
        cmd.stderr = stderr

    return apply


def with_args_redaction(redaction: ArgsRedaction) -> Option:
    """Transform the arguments recorded on the span, e.g. to hide secrets.

    The arguments passed to the process are not affected.
    """

    def apply(cmd: Cmd) -> None:
        cmd.args_redaction = redaction

    return apply


def with_tracer(tracer: Tracer) -> Option:
    def apply(cmd: Cmd) -> None:
        cmd.tracer = tracer

    return apply


def with_logger(logger: ContextLogger) -> Option:
    def apply(cmd: Cmd) -> None:
        cmd.logger = logger

    return apply


def with_process_factory(factory: ProcessFactory) -> Option:
    """Spawn stages through ``factory`` instead of a local subprocess.

    Like the tracer and logger, the factory is shared by every stage.
    """

    def apply(cmd: Cmd) -> None:
        cmd.process_factory = factory

    return apply
