"""Exception hierarchy for pipexec.

All pipexec exceptions inherit from PipexecError so callers can handle every
library failure with a single ``except`` clause. Misuse of the process
lifecycle raises ExecError subclasses whose messages carry the ``exec:``
prefix.
"""

from __future__ import annotations

import signal
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pipexec.command import Cmd

# ============================================================================
# Base Exception
# ============================================================================


class PipexecError(Exception):
    """Base exception for all pipexec errors.

    A failing top-level helper attaches the descriptor it built as ``cmd`` so
    the caller can still inspect it.
    """

    cmd: Cmd | None = None


# ============================================================================
# Lifecycle Errors
# ============================================================================


class ExecError(PipexecError):
    """Raised when a process descriptor is used incorrectly.

    The message is always prefixed with ``exec: ``.
    """

    prefix = "exec: "

    def __init__(self, message: str) -> None:
        super().__init__(f"{self.prefix}{message}")


class AlreadyStartedError(ExecError):
    """Raised when ``start`` is called on a descriptor that already has a process."""

    def __init__(self) -> None:
        super().__init__("already started")


class NotStartedError(ExecError):
    """Raised when ``wait`` is called before ``start``."""

    def __init__(self) -> None:
        super().__init__("not started")


class WaitAlreadyCalledError(ExecError):
    """Raised when ``wait`` is called on a descriptor that already has exit information."""

    def __init__(self) -> None:
        super().__init__("Wait was already called")


class ExecutableNotFoundError(ExecError, FileNotFoundError):
    """Raised when a path search fails to find an executable file.

    Also a FileNotFoundError, so generic ``OSError`` handlers see it too.

    Examples
    --------
    Example usage::

        raise ExecutableNotFoundError("grep")
    """

    def __init__(self, name: str) -> None:
        """Initialize not found error.

        Args
        ----
            name: The executable name that could not be resolved
        """
        ExecError.__init__(self, f"{name!r}: executable file not found in $PATH")
        self.name = name

    def __str__(self) -> str:
        return str(self.args[0])


# ============================================================================
# Execution Errors
# ============================================================================


class ExitError(PipexecError):
    """Raised when a process exits unsuccessfully.

    Attributes
    ----------
    returncode : int
        Raw return code from the process; negative when killed by a signal
    exit_code : int
        Exit status, or -1 when the process was terminated by a signal
    stderr : bytes
        Everything the process wrote to its standard error
    """

    def __init__(self, returncode: int, stderr: bytes = b"") -> None:
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(_describe_returncode(returncode))

    @property
    def exit_code(self) -> int:
        return self.returncode if self.returncode >= 0 else -1


class StreamCopyError(PipexecError):
    """Raised by ``wait`` when copying to or from a process stream fails."""

    def __init__(self, stream: str, cause: BaseException) -> None:
        super().__init__(f"exec: copying {stream}: {cause}")
        self.stream = stream


# ============================================================================
# Setup Errors
# ============================================================================


class ConfigurationError(PipexecError):
    """Raised when configuration is invalid or missing.

    Examples
    --------
    Example usage::

        raise ConfigurationError("tracing", "unknown exporter 'zipkin'")
    """

    def __init__(self, component: str, reason: str) -> None:
        super().__init__(f"Configuration error in '{component}': {reason}")
        self.component = component
        self.reason = reason


class TracingSetupError(PipexecError):
    """Raised when a tracing exporter cannot be built."""


def _describe_returncode(returncode: int) -> str:
    if returncode >= 0:
        return f"exit status {returncode}"
    try:
        name = signal.Signals(-returncode).name
    except ValueError:
        name = str(-returncode)
    return f"signal: {name}"


# Sentinel callers test for with ``except ErrNotFound`` or ``pytest.raises``.
ErrNotFound = ExecutableNotFoundError

__all__ = [
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
]
