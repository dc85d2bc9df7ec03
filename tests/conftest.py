"""Configuration file for pytest containing fixtures and configuration.

This module provides fixtures that can be used across multiple test files:
- fake_binary: writes a bash script into a temp dir on PATH
- span_exporter / tracer: an SDK tracer recording finished spans in memory
- recording_logger: a context logger that keeps every event
- broken_binary: an executable on PATH whose interpreter does not exist
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from pipexec.testing import fake_binary  # noqa: F401


class RecordingLogger:
    """Context logger double that records ``(message, fields)`` pairs."""

    def __init__(self) -> None:
        self.events: list[tuple[str, dict[str, Any]]] = []
        self.contexts: list[Any] = []

    def debug(self, context: Any, message: str, **fields: Any) -> None:
        self.contexts.append(context)
        self.events.append((message, fields))

    @property
    def messages(self) -> list[str]:
        return [message for message, _ in self.events]


@pytest.fixture
def span_exporter() -> InMemorySpanExporter:
    return InMemorySpanExporter()


@pytest.fixture
def tracer_provider(span_exporter: InMemorySpanExporter) -> TracerProvider:
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(span_exporter))
    return provider


@pytest.fixture
def tracer(tracer_provider: TracerProvider) -> Any:
    return tracer_provider.get_tracer("pipexec.tests")


@pytest.fixture
def recording_logger() -> RecordingLogger:
    return RecordingLogger()


@pytest.fixture
def broken_binary(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> Callable[[str], Path]:
    """Factory for executables that resolve on PATH but fail to spawn."""

    def factory(name: str) -> Path:
        monkeypatch.setenv("PATH", f"{tmp_path}:/usr/bin:/bin")
        path = tmp_path / name
        path.write_text("#!/nonexistent/interpreter\n")
        path.chmod(0o755)
        return path

    return factory
