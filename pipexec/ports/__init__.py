"""Port interfaces for the collaborators pipexec drives."""

from pipexec.ports.logger import ContextLogger
from pipexec.ports.process import ProcessFactory, ProcessHandle

__all__ = [
    "ContextLogger",
    "ProcessFactory",
    "ProcessHandle",
]
