"""Logger port - the narrow contract pipexec consumes for structured logging.

A logger receives the OpenTelemetry context the event belongs to, a message,
and arbitrary key-value fields. Adapters decide how (or whether) to emit it.
"""

from __future__ import annotations

from abc import abstractmethod
from typing import Any, Protocol, runtime_checkable

from opentelemetry.context import Context


@runtime_checkable
class ContextLogger(Protocol):
    """Port for context-aware structured loggers."""

    @abstractmethod
    def debug(self, context: Context | None, message: str, **fields: Any) -> None:
        """Log a debug event.

        Args
        ----
            context: OpenTelemetry context of the operation being logged
            message: Human readable message, never used as a format string
            **fields: Structured key-value pairs attached to the event
        """
        ...
