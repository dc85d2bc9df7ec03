"""pipexec - run external commands and pipelines with tracing and structured logging.

A thin layer over :mod:`subprocess` that chains commands like a shell pipe,
opens an OpenTelemetry span per process and logs failures with the captured
standard error.
"""

# Version is defined in pyproject.toml and read dynamically
try:
    from importlib.metadata import version

    __version__ = version("pipexec")
except Exception:
    __version__ = "0.0.0.dev0"  # Fallback for development installs

from pipexec.command import Cmd, command, command_context, look_path, run, run_with_context
from pipexec.config import LoggingConfig, PipexecConfig, TracingConfig, load_config
from pipexec.exceptions import (
    AlreadyStartedError,
    ConfigurationError,
    ErrNotFound,
    ExecError,
    ExecutableNotFoundError,
    ExitError,
    NotStartedError,
    PipexecError,
    StreamCopyError,
    TracingSetupError,
    WaitAlreadyCalledError,
)
from pipexec.logging import LoguruContextLogger, NoOpLogger, configure_logging, get_logger
from pipexec.options import (
    Option,
    append_args,
    pipe,
    with_args,
    with_args_redaction,
    with_env,
    with_envs,
    with_logger,
    with_process_factory,
    with_stderr,
    with_stdin,
    with_stdout,
    with_tracer,
)
from pipexec.ports import ContextLogger, ProcessFactory, ProcessHandle
from pipexec.tracing import configure_tracing, get_tracer

__all__ = [
    # Descriptors
    "Cmd",
    "Option",
    "command",
    "command_context",
    "look_path",
    "run",
    "run_with_context",
    # Options
    "append_args",
    "pipe",
    "with_args",
    "with_args_redaction",
    "with_env",
    "with_envs",
    "with_logger",
    "with_process_factory",
    "with_stderr",
    "with_stdin",
    "with_stdout",
    "with_tracer",
    # Exceptions
    "AlreadyStartedError",
    "ConfigurationError",
    "ErrNotFound",
    "ExecError",
    "ExecutableNotFoundError",
    "ExitError",
    "NotStartedError",
    "PipexecError",
    "StreamCopyError",
    "TracingSetupError",
    "WaitAlreadyCalledError",
    # Ports
    "ContextLogger",
    "ProcessFactory",
    "ProcessHandle",
    # Logging & tracing
    "LoguruContextLogger",
    "NoOpLogger",
    "configure_logging",
    "configure_tracing",
    "get_logger",
    "get_tracer",
    # Configuration
    "LoggingConfig",
    "PipexecConfig",
    "TracingConfig",
    "load_config",
    "__version__",
]
