"""Process port - the spawn primitive a process descriptor drives.

This is the pipexec equivalent of ``fork``/``exec`` plus ``waitpid``: a
handle is configured with a path, arguments, environment and stdio bindings,
started once and waited once.
"""

from __future__ import annotations

from abc import abstractmethod
from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class ProcessHandle(Protocol):
    """Port for a single spawned operating-system process."""

    @property
    @abstractmethod
    def pid(self) -> int | None:
        """Process id, or None before the process is started."""
        ...

    @property
    @abstractmethod
    def returncode(self) -> int | None:
        """Raw return code, or None until ``wait`` has returned."""
        ...

    @abstractmethod
    def start(self) -> None:
        """Spawn the process without waiting for it.

        Raises
        ------
        OSError
            If the executable cannot be launched
        """
        ...

    @abstractmethod
    def wait(self) -> None:
        """Block until the process exits and all stdio copying has drained.

        Raises
        ------
        ExitError
            If the process exits with a non-zero status
        StreamCopyError
            If copying to or from one of the streams fails
        """
        ...

    @abstractmethod
    def kill(self) -> None:
        """Terminate the process immediately; a no-op once it has exited."""
        ...


class ProcessFactory(Protocol):
    """Builds an unstarted :class:`ProcessHandle` from a stage's settings."""

    def __call__(
        self,
        path: str,
        args: Sequence[str],
        env: Sequence[str],
        stdin: Any = None,
        stdout: Any = None,
        stderr: Any = None,
    ) -> ProcessHandle: ...
