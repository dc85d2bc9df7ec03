"""Configuration loading and management for pipexec."""

from pipexec.config.loader import load_config
from pipexec.config.models import LoggingConfig, PipexecConfig, TracingConfig

__all__ = [
    "LoggingConfig",
    "PipexecConfig",
    "TracingConfig",
    "load_config",
]
