"""Tests for the names exported from the top-level ``pipexec`` package."""

import pipexec
from pipexec.drivers import LocalProcess
from pipexec.logging import LoguruContextLogger, NoOpLogger
from pipexec.ports import ContextLogger, ProcessHandle

EXPECTED = {
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
}


def test_public_api_matches_dunder_all():
    assert hasattr(pipexec, "__all__")
    assert set(pipexec.__all__) == EXPECTED


def test_adapters_satisfy_ports(recording_logger):
    assert isinstance(NoOpLogger(), ContextLogger)
    assert isinstance(LoguruContextLogger(), ContextLogger)
    assert isinstance(recording_logger, ContextLogger)
    assert isinstance(LocalProcess("/bin/true", ["/bin/true"], []), ProcessHandle)
