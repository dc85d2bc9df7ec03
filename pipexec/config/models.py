"""Configuration data models for pipexec."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from pipexec.exceptions import ConfigurationError

_LOG_LEVELS = frozenset({"TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})
_LOG_FORMATS = frozenset({"console", "json", "structured", "rich"})
_EXPORTERS = frozenset({"none", "console", "otlp"})
_OTLP_PROTOCOLS = frozenset({"grpc", "http"})


@dataclass(frozen=True, slots=True)
class LoggingConfig:
    """Logging configuration for pipexec.

    Attributes
    ----------
    level : str, default="INFO"
        Log level (TRACE, DEBUG, INFO, WARNING, ERROR, CRITICAL)
    format : str, default="structured"
        Output format (console, json, structured, rich)
    output_file : str | None, default=None
        Optional file path to write JSON logs to
    use_color : bool, default=True
        Use ANSI color codes (auto-disabled for non-TTY)
    include_timestamp : bool, default=True
        Include timestamp in log output

    Examples
    --------
    TOML configuration:

    ```toml
    [tool.pipexec.logging]
    level = "DEBUG"
    format = "json"
    ```
    """

    level: Literal["TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["console", "json", "structured", "rich"] = "structured"
    output_file: str | None = None
    use_color: bool = True
    include_timestamp: bool = True

    def __post_init__(self) -> None:
        if self.level not in _LOG_LEVELS:
            raise ConfigurationError("logging", f"unknown level {self.level!r}")
        if self.format not in _LOG_FORMATS:
            raise ConfigurationError("logging", f"unknown format {self.format!r}")


@dataclass(frozen=True, slots=True)
class TracingConfig:
    """Tracing configuration for pipexec.

    Attributes
    ----------
    exporter : str, default="none"
        "none" (spans are created but not exported), "console" (print spans
        to stdout) or "otlp" (send to an OpenTelemetry collector)
    service_name : str, default="pipexec"
        ``service.name`` resource attribute
    service_version : str, default="0.0.0"
        ``service.version`` resource attribute
    otlp_protocol : str, default="grpc"
        "grpc" or "http"
    otlp_endpoint : str | None, default=None
        Collector endpoint; the exporter's own default when None
    otlp_headers : dict[str, str]
        Extra headers sent with every export request
    """

    exporter: Literal["none", "console", "otlp"] = "none"
    service_name: str = "pipexec"
    service_version: str = "0.0.0"
    otlp_protocol: Literal["grpc", "http"] = "grpc"
    otlp_endpoint: str | None = None
    otlp_headers: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.exporter not in _EXPORTERS:
            raise ConfigurationError("tracing", f"unknown exporter {self.exporter!r}")
        if self.otlp_protocol not in _OTLP_PROTOCOLS:
            raise ConfigurationError("tracing", f"unknown otlp_protocol {self.otlp_protocol!r}")


@dataclass(slots=True)
class PipexecConfig:
    """Complete pipexec configuration."""

    logging: LoggingConfig = field(default_factory=LoggingConfig)
    tracing: TracingConfig = field(default_factory=TracingConfig)
