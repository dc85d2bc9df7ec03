"""Process descriptors and pipelines.

A :class:`Cmd` wraps one external command: its resolved path, arguments,
environment and stdio bindings. Descriptors can be chained with the
:func:`~pipexec.options.pipe` option; the chain is wired at construction so
that each stage's standard output feeds the next stage's standard input, and
running the head runs the whole pipeline.

Every started process gets an ``exec:run`` span, nested under the span of the
stage before it, and the span's ids are exported to the child as ``TRACE_ID``
and ``SPAN_ID``.

Examples
--------
Example usage::

    from pipexec import pipe, run, with_args, with_stdout

    out = io.BytesIO()
    run("echo", with_args("a\\nb\\nc"), with_stdout(out), pipe("grep", "b"))
"""

from __future__ import annotations

import os
import shlex
import shutil
from collections.abc import Callable, Sequence
from contextlib import suppress
from typing import TYPE_CHECKING, Any

from opentelemetry import trace
from opentelemetry.context import Context
from opentelemetry.trace import Span, Status, StatusCode, Tracer

from pipexec.drivers.local_process import LocalProcess
from pipexec.drivers.streams import LockedBuffer, MultiWriter
from pipexec.exceptions import (
    AlreadyStartedError,
    ExecutableNotFoundError,
    ExitError,
    NotStartedError,
    PipexecError,
    WaitAlreadyCalledError,
)
from pipexec.logging import NoOpLogger
from pipexec.tracing import default_tracer, trace_env

if TYPE_CHECKING:
    from pipexec.options import Option
    from pipexec.ports import ContextLogger, ProcessFactory, ProcessHandle

SPAN_NAME = "exec:run"

ArgsRedaction = Callable[[list[str]], Sequence[str] | None]


def look_path(name: str) -> str:
    """Search for an executable named ``name`` in the directories on ``PATH``.

    If ``name`` contains a directory separator it is checked directly and
    ``PATH`` is not consulted.

    Raises
    ------
    ExecutableNotFoundError
        If no executable file is found
    """
    path = shutil.which(name) if name else None
    if path is None:
        raise ExecutableNotFoundError(name)
    return path


class Cmd:
    """A process descriptor: one stage of a (possibly single-stage) pipeline.

    Build instances with :func:`command` or :func:`command_context` rather
    than directly, so that options are applied and the pipeline is wired.

    Attributes
    ----------
    path : str
        Resolved executable path, or the name as given if resolution failed
    args : list[str]
        Argument vector; ``args[0]`` mirrors ``path``
    env : list[str]
        ``KEY=VALUE`` entries passed to the child
    stdin, stdout, stderr : Any
        Stdio bindings; None binds the null device. The child's stderr is
        also always captured for diagnostics.
    next : Cmd | None
        The next stage of the pipeline
    err : Exception | None
        Deferred construction error, raised by ``start``
    process : ProcessHandle | None
        Live process handle once started
    process_factory : ProcessFactory
        Builds the process handle at start; spawns a local subprocess by default
    tracer : Tracer
        OpenTelemetry tracer (no-op by default)
    logger : ContextLogger
        Diagnostic logger (no-op by default)
    args_redaction : callable | None
        Transform applied to ``args`` before they are recorded on the span
    """

    def __init__(self, name: str, context: Context | None = None) -> None:
        self.path = name
        self.err: Exception | None = None
        try:
            self.path = look_path(name)
        except ExecutableNotFoundError as e:
            self.err = e

        self.args: list[str] = [self.path]
        self.env: list[str] = [f"{key}={value}" for key, value in os.environ.items()]
        self.stdin: Any = None
        self.stdout: Any = None
        self.stderr: Any = None
        self.next: Cmd | None = None
        self.process: ProcessHandle | None = None
        self.process_factory: ProcessFactory = LocalProcess

        self.tracer: Tracer = default_tracer()
        self.logger: ContextLogger = NoOpLogger()
        self.args_redaction: ArgsRedaction | None = None

        self._context = context
        self._span: Span | None = None
        self._stderr_buffer = LockedBuffer()
        self._exit_code: int | None = None
        # Write end of the pipe to the next stage; released after wait
        self._closer: Any = None
        # Parent's copy of the read end feeding this stage; released after start
        self._stdin_closer: Any = None

    @property
    def exit_code(self) -> int | None:
        """Exit status once waited; -1 if the process was killed by a signal."""
        return self._exit_code

    @property
    def success(self) -> bool:
        return self._exit_code == 0

    def __str__(self) -> str:
        """Human-readable pipeline description, for debugging only.

        The result is not suitable as input to a shell.
        """
        rendered = self._render()
        if self.next is not None:
            rendered = f"{rendered} | {self.next}"
        return rendered

    def __repr__(self) -> str:
        return f"<Cmd {str(self)!r}>"

    def _render(self) -> str:
        return " ".join([self.path, *(shlex.quote(arg) for arg in self.args[1:])])

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start the command but do not wait for it to complete.

        After a successful call, :meth:`wait` must be called to release the
        associated resources.

        Raises
        ------
        AlreadyStartedError
            If the command has already been started
        ExecutableNotFoundError
            If this stage (or one after it) could not be resolved
        OSError
            If the process cannot be spawned
        """
        if self.process is not None:
            raise AlreadyStartedError()
        if self.err is not None:
            raise self.err

        span = self.tracer.start_span(
            SPAN_NAME,
            context=self._context,
            attributes={"exec.args": self._redacted_args()},
        )
        context = trace.set_span_in_context(span, self._context)

        stderr = (
            self._stderr_buffer
            if self.stderr is None
            else MultiWriter(self._stderr_buffer, self.stderr)
        )

        self._context = context
        if self.next is not None:
            self.next._context = context

        process = self.process_factory(
            self.path,
            self.args,
            [*self.env, *trace_env(span)],
            stdin=self.stdin,
            stdout=self.stdout,
            stderr=stderr,
        )
        try:
            process.start()
        except Exception as e:
            span.record_exception(e)
            span.set_status(Status(StatusCode.ERROR, str(e)))
            span.end()
            self._release()
            if self.next is not None and self.next._stdin_closer is not None:
                self.next._stdin_closer.close()
            raise
        finally:
            if self._stdin_closer is not None:
                self._stdin_closer.close()

        self.process = process
        self._span = span
        span.add_event("exec.started", {"exec.pid": process.pid or 0})

    def wait(self) -> None:
        """Wait for the command, and every stage after it, to exit.

        Stages after this one that are not running yet are started first, so
        data can flow through the whole pipeline while this stage runs. Then
        this stage is waited on, followed by the next one. If this stage
        fails, the spans of the started stages after it are marked failed and
        those stages are not waited on.

        Raises
        ------
        NotStartedError
            If the command has not been started
        WaitAlreadyCalledError
            If the command has already been waited on
        ExitError
            If this stage or a later one exits unsuccessfully
        StreamCopyError
            If copying stdio to or from a process fails
        """
        if self.process is None:
            raise NotStartedError()
        if self._exit_code is not None:
            raise WaitAlreadyCalledError()

        try:
            self._wait_pipeline()
        except BaseException as e:
            self._finish_span(e)
            raise
        self._finish_span(None)

    def run(self) -> None:
        """Start the command and wait for it to complete."""
        self.start()
        self.wait()

    def _wait_pipeline(self) -> None:
        try:
            self._start_downstream()
        except BaseException:
            # The start error is what the caller sees; stop and reap this stage
            self._process().kill()
            with suppress(PipexecError):
                self._wait_process(log=False)
            raise

        try:
            self._wait_process()
        except BaseException:
            if self.next is not None:
                self.next._abort(f"`{self._render()}` exited with code {self._exit_code}")
            raise

        if self.next is not None:
            self.next.wait()

    def _start_downstream(self) -> None:
        node = self.next
        while node is not None:
            if node.process is None:
                try:
                    node.start()
                except BaseException:
                    if self.next is not node:
                        self.next._abort(f"`{node._render()}` failed to start")
                    raise
            node = node.next

    def _wait_process(self, *, log: bool = True) -> None:
        process = self._process()
        try:
            try:
                process.wait()
            finally:
                returncode = process.returncode
                self._exit_code = returncode if returncode is not None and returncode >= 0 else -1
        except PipexecError as e:
            output = self._stderr_buffer.getvalue()
            if isinstance(e, ExitError):
                e.stderr = output
            if log:
                self.logger.debug(
                    self._context,
                    f"failed to execute `{os.path.basename(self.path)}`",
                    **{
                        "exec.error": e,
                        "exec.exit_code": self._exit_code,
                        "exec.command": self._render(),
                        "exec.output": output.decode(errors="replace").strip("\r\n "),
                    },
                )
            raise
        finally:
            self._release()

    def _process(self) -> ProcessHandle:
        if self.process is None:
            raise NotStartedError()
        return self.process

    def _release(self) -> None:
        if self._closer is not None:
            self._closer.close()

    def _abort(self, message: str) -> None:
        """Fail the spans of this stage and every started stage after it.

        Used when an earlier stage failed; the aborted stages are not waited on.
        """
        node: Cmd | None = self
        while node is not None and node._span is not None:
            span, node._span = node._span, None
            span.set_status(Status(StatusCode.ERROR, message))
            span.end()
            node._release()
            node = node.next

    def _finish_span(self, error: BaseException | None) -> None:
        span = self._span
        if span is None:
            return
        self._span = None

        span.set_attribute("exec.exit_code", -1 if self._exit_code is None else self._exit_code)
        if error is None:
            span.set_status(Status(StatusCode.OK))
        else:
            span.record_exception(error)
            span.set_status(Status(StatusCode.ERROR, str(error)))
        span.end()

    def _redacted_args(self) -> list[str]:
        if self.args_redaction is None:
            return list(self.args)
        return list(self.args_redaction(list(self.args)) or [])


def command(name: str, *options: Option) -> Cmd:
    """Return a :class:`Cmd` that executes ``name`` configured by ``options``.

    Resolution failures do not raise here; they are stored on ``cmd.err`` and
    raised by ``start``.
    """
    return command_context(None, name, *options)


def command_context(context: Context | None, name: str, *options: Option) -> Cmd:
    """Like :func:`command`, with spans parented to ``context``."""
    cmd = Cmd(name, context)
    for option in options:
        option(cmd)

    cmd.err = _setup(cmd)
    return cmd


def run(name: str, *options: Option) -> Cmd:
    """Build and run a command, returning it once the whole pipeline exits.

    The failing descriptor is attached to any raised :class:`PipexecError`
    as ``error.cmd``.
    """
    return run_with_context(None, name, *options)


def run_with_context(context: Context | None, name: str, *options: Option) -> Cmd:
    """Like :func:`run`, with spans parented to ``context``."""
    cmd = command_context(context, name, *options)
    if cmd.err is not None:
        cmd.logger.debug(context, str(cmd.err))
        if isinstance(cmd.err, PipexecError):
            cmd.err.cmd = cmd
        raise cmd.err

    try:
        cmd.run()
    except PipexecError as e:
        e.cmd = cmd
        raise
    return cmd


def _setup(cmd: Cmd) -> Exception | None:
    """Wire the chain starting at ``cmd`` and return its first construction error.

    Stages that cannot be resolved are not connected by a pipe, but every
    stage receives the head's tracer and logger and the walk continues past
    them, so the failure surfaces when the pipeline is started.
    """
    first_error: Exception | None = None
    node: Cmd | None = cmd
    while node is not None:
        following = node.next
        if following is not None:
            following.tracer = node.tracer
            following.logger = node.logger
            following.args_redaction = node.args_redaction
            following.process_factory = node.process_factory

        if node.err is not None:
            node.logger.debug(node._context, f"{os.path.basename(node.path)} not found")
            if first_error is None:
                first_error = node.err
        elif following is not None and following.err is None:
            _connect(node, following)

        node = following
    return first_error


def _connect(producer: Cmd, consumer: Cmd) -> None:
    read_fd, write_fd = os.pipe()
    reader = os.fdopen(read_fd, "rb")
    writer = os.fdopen(write_fd, "wb")

    consumer.stdout = producer.stdout
    consumer.stderr = producer.stderr
    consumer.env = list(producer.env)
    consumer.stdin = reader
    consumer._stdin_closer = reader

    producer.stdout = writer
    producer._closer = writer
