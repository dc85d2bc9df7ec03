"""Configuration loader for pipexec.

Configuration lives in ``pyproject.toml`` under ``[tool.pipexec]`` (or in a
standalone TOML file), with environment variables taking precedence over
file values.
"""

from __future__ import annotations

import os
import re
import tomllib
from pathlib import Path
from typing import Any

from pipexec.config.models import LoggingConfig, PipexecConfig, TracingConfig
from pipexec.exceptions import ConfigurationError
from pipexec.logging import get_logger

_TRUTHY_VALUES = frozenset({"true", "1", "yes", "on", "enabled"})
_FALSY_VALUES = frozenset({"false", "0", "no", "off", "disabled"})

ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}")

logger = get_logger(__name__)


def _parse_bool_env(value: str) -> bool:
    """Parse boolean from environment variable value.

    Raises
    ------
    ValueError
        If value is not a recognized boolean string
    """
    normalized = value.lower().strip()
    if normalized in _TRUTHY_VALUES:
        return True
    if normalized in _FALSY_VALUES:
        return False
    expected = sorted(_TRUTHY_VALUES | _FALSY_VALUES)
    raise ValueError(f"Invalid boolean value: {value!r}. Expected one of: {expected}")


def load_config(path: str | Path | None = None) -> PipexecConfig:
    """Load pipexec configuration.

    Discovery order:
    1. Explicit path argument
    2. ``PIPEXEC_CONFIG_PATH`` env var
    3. ``pyproject.toml`` in CWD or a parent directory with ``[tool.pipexec]``
    4. Built-in defaults

    Environment overrides are applied in every case.

    Raises
    ------
    ConfigurationError
        If the explicit path does not exist or a value is invalid
    """
    config_path = _find_config_file(path)
    data: dict[str, Any] = {}
    if config_path is not None:
        logger.debug("Loading configuration from {path}", path=config_path)
        data = _read_toml(config_path)

    data = _substitute_env_vars(data)
    return PipexecConfig(
        logging=_parse_logging_config(data.get("logging", {})),
        tracing=_parse_tracing_config(data.get("tracing", {})),
    )


def _find_config_file(path: str | Path | None) -> Path | None:
    if path:
        config_path = Path(path)
        if not config_path.exists():
            raise ConfigurationError("config", f"file not found: {config_path}")
        return config_path

    if env_path := os.getenv("PIPEXEC_CONFIG_PATH"):
        config_path = Path(env_path)
        if config_path.exists():
            return config_path
        logger.warning("PIPEXEC_CONFIG_PATH set but file not found: {}", config_path)

    current = Path.cwd()
    while True:
        pyproject = current / "pyproject.toml"
        if pyproject.exists():
            with pyproject.open("rb") as f:
                data = tomllib.load(f)
            if "pipexec" in data.get("tool", {}):
                return pyproject
        if current == current.parent:
            return None
        current = current.parent


def _read_toml(config_path: Path) -> dict[str, Any]:
    try:
        with config_path.open("rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError("config", f"invalid TOML in {config_path}: {e}") from e

    # pyproject.toml or a file that nests the section; otherwise the file is flat
    if "tool" in data:
        return data["tool"].get("pipexec", {})
    return data


def _substitute_env_vars(data: Any) -> Any:
    """Recursively replace ``${VAR}`` placeholders with environment values."""
    if isinstance(data, str):

        def replacer(match: re.Match[str]) -> str:
            return os.environ.get(match.group(1), match.group(0))

        return ENV_VAR_PATTERN.sub(replacer, data)

    if isinstance(data, dict):
        return {key: _substitute_env_vars(value) for key, value in data.items()}

    if isinstance(data, list):
        return [_substitute_env_vars(item) for item in data]

    return data


def _parse_logging_config(logging_data: dict[str, Any]) -> LoggingConfig:
    """Parse logging configuration with environment variable overrides.

    - PIPEXEC_LOG_LEVEL: Log level
    - PIPEXEC_LOG_FORMAT: Output format (console, json, structured, rich)
    - PIPEXEC_LOG_FILE: Optional file path for log output
    - PIPEXEC_LOG_COLOR: Use color output (true/false)
    """
    level = str(logging_data.get("level", "INFO")).upper()
    format_type = str(logging_data.get("format", "structured")).lower()
    output_file = logging_data.get("output_file")
    use_color = logging_data.get("use_color", True)
    include_timestamp = logging_data.get("include_timestamp", True)

    if env_level := os.getenv("PIPEXEC_LOG_LEVEL"):
        level = env_level.upper()

    if env_format := os.getenv("PIPEXEC_LOG_FORMAT"):
        format_type = env_format.lower()

    if env_file := os.getenv("PIPEXEC_LOG_FILE"):
        output_file = env_file

    if env_color := os.getenv("PIPEXEC_LOG_COLOR"):
        try:
            use_color = _parse_bool_env(env_color)
        except ValueError as e:
            raise ConfigurationError("logging", str(e)) from e

    return LoggingConfig(
        level=level,  # type: ignore[arg-type]
        format=format_type,  # type: ignore[arg-type]
        output_file=output_file,
        use_color=bool(use_color),
        include_timestamp=bool(include_timestamp),
    )


def _parse_tracing_config(tracing_data: dict[str, Any]) -> TracingConfig:
    """Parse tracing configuration with environment variable overrides.

    - PIPEXEC_TRACE_EXPORTER: none, console or otlp
    - PIPEXEC_SERVICE_NAME: service.name resource attribute
    - PIPEXEC_OTLP_ENDPOINT: collector endpoint
    """
    exporter = str(tracing_data.get("exporter", "none")).lower()
    service_name = tracing_data.get("service_name", "pipexec")
    otlp_endpoint = tracing_data.get("otlp_endpoint")

    if env_exporter := os.getenv("PIPEXEC_TRACE_EXPORTER"):
        exporter = env_exporter.lower()

    if env_service := os.getenv("PIPEXEC_SERVICE_NAME"):
        service_name = env_service

    if env_endpoint := os.getenv("PIPEXEC_OTLP_ENDPOINT"):
        otlp_endpoint = env_endpoint

    headers = tracing_data.get("otlp_headers", {})
    if not isinstance(headers, dict):
        raise ConfigurationError("tracing", "otlp_headers must be a table")

    return TracingConfig(
        exporter=exporter,  # type: ignore[arg-type]
        service_name=service_name,
        service_version=str(tracing_data.get("service_version", "0.0.0")),
        otlp_protocol=str(tracing_data.get("otlp_protocol", "grpc")).lower(),  # type: ignore[arg-type]
        otlp_endpoint=otlp_endpoint,
        otlp_headers={str(k): str(v) for k, v in headers.items()},
    )
