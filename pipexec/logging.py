"""Loguru setup for pipexec and the context loggers descriptors emit through.

Library code never configures sinks on import. The first ``get_logger`` call
falls back to ``PIPEXEC_LOG_LEVEL`` / ``PIPEXEC_LOG_FORMAT``; applications
(and the CLI) call ``configure_logging`` explicitly.

Examples
--------
>>> from pipexec.logging import get_logger
>>> log = get_logger(__name__)
>>> log.info("Pipeline finished", stages=3)

Send descriptor diagnostics to loguru, with the trace ids of the failing span::

    from pipexec import run, with_logger
    from pipexec.logging import LoguruContextLogger, configure_logging

    configure_logging(level="DEBUG", format="json")
    run("make", with_logger(LoguruContextLogger()))
"""

import os
import sys
from contextlib import suppress
from functools import lru_cache
from pathlib import Path
from typing import Any, Literal

from loguru import logger
from opentelemetry import trace
from opentelemetry.context import Context
from opentelemetry.trace import format_span_id, format_trace_id
from rich.logging import RichHandler

LogLevel = Literal["TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
LogFormat = Literal["console", "json", "structured", "rich"]

# Settings of the last configure_logging call, None until configured
_CURRENT_CONFIG: dict | None = None
# Only these sinks are ours to remove; user-added sinks are left alone
_HANDLER_IDS: list[int] = []


def configure_logging(
    level: LogLevel = "INFO",
    format: LogFormat = "structured",
    output_file: str | Path | None = None,
    use_color: bool = True,
    include_timestamp: bool = True,
    force_reconfigure: bool = False,
    use_rich: bool = False,
    backtrace: bool = True,
    diagnose: bool = True,
) -> None:
    """Install pipexec's loguru sinks, replacing the ones from a previous call.

    Repeating a call with identical settings is a no-op unless
    ``force_reconfigure`` is set.

    Parameters
    ----------
    level : LogLevel, default="INFO"
        Minimum level for every sink
    format : LogFormat, default="structured"
        "console" (plain text), "json" (one serialized record per line),
        "structured" (colored, bound fields appended) or "rich"
    output_file : str | Path | None, default=None
        Extra JSON sink, rotated at 10 MB and kept for a week
    use_color : bool, default=True
        Colorize the structured format when stderr is a terminal
    include_timestamp : bool, default=True
        Prefix text formats with the record time
    force_reconfigure : bool, default=False
        Reinstall sinks even if the settings did not change
    use_rich : bool, default=False
        Same as ``format="rich"``
    backtrace, diagnose : bool, default=True
        Passed through to loguru; disable ``diagnose`` in production
    """
    global _CURRENT_CONFIG

    settings = {
        "level": level,
        "format": "rich" if use_rich else format,
        "output_file": str(output_file) if output_file else None,
        "use_color": use_color,
        "include_timestamp": include_timestamp,
        "backtrace": backtrace,
        "diagnose": diagnose,
    }
    if settings == _CURRENT_CONFIG and not force_reconfigure:
        return

    while _HANDLER_IDS:
        with suppress(ValueError):
            logger.remove(_HANDLER_IDS.pop())

    common = {"level": level, "backtrace": backtrace, "diagnose": diagnose}
    _HANDLER_IDS.append(
        logger.add(**_console_sink(settings["format"], use_color, include_timestamp), **common)
    )

    if output_file:
        path = Path(output_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        _HANDLER_IDS.append(
            logger.add(path, serialize=True, rotation="10 MB", retention="1 week", **common)
        )

    _CURRENT_CONFIG = settings


def _console_sink(format: str, use_color: bool, include_timestamp: bool) -> dict[str, Any]:
    """Return the ``logger.add`` arguments for the stderr (or rich) sink."""
    if format == "rich":
        handler = RichHandler(
            rich_tracebacks=True,
            markup=False,
            show_time=include_timestamp,
            show_path=True,
        )
        return {"sink": handler, "format": "{message}"}

    if format == "json":
        return {"sink": sys.stderr, "serialize": True}

    if format == "structured":
        colorize = use_color and sys.stderr.isatty()
        when = "<green>{time:YYYY-MM-DD HH:mm:ss}</green> " if include_timestamp else ""
        level = "<level>{level: <8}</level>" if colorize else "{level: <8}"
        # exec.* fields are bound, so they only show up through {extra}
        return {
            "sink": sys.stderr,
            "format": f"{when}[{level}] <cyan>{{name}}:{{line}}</cyan> | {{message}} | {{extra}}",
            "colorize": colorize,
        }

    when = "{time:YYYY-MM-DD HH:mm:ss} " if include_timestamp else ""
    return {
        "sink": sys.stderr,
        "format": when + "{level: <8} | {name} | {message}",
        "colorize": False,
    }


@lru_cache(maxsize=256)
def get_logger(name: str) -> Any:
    """Return the loguru logger bound with ``module=name``.

    Configures logging from the environment on first use if nothing else has.
    """
    _ensure_configured()
    return logger.bind(module=name)


class NoOpLogger:
    """Context logger that discards every event. Used when none is configured."""

    def debug(self, context: Context | None, message: str, **fields: Any) -> None:
        pass


class LoguruContextLogger:
    """Context logger that emits through Loguru.

    Fields are bound onto the record's ``extra`` together with the trace and
    span ids of the span active in ``context``, so JSON sinks can be joined
    with exported traces.

    Parameters
    ----------
    bound_logger : loguru.Logger | None
        Logger to emit with; defaults to ``get_logger("pipexec")``
    """

    def __init__(self, bound_logger: Any = None) -> None:
        self._logger = bound_logger if bound_logger is not None else get_logger("pipexec")

    def debug(self, context: Context | None, message: str, **fields: Any) -> None:
        span_context = trace.get_current_span(context).get_span_context()
        if span_context.is_valid:
            fields.setdefault("trace_id", format_trace_id(span_context.trace_id))
            fields.setdefault("span_id", format_span_id(span_context.span_id))

        # No positional/keyword args: the message is never treated as a format string
        self._logger.bind(**fields).debug(message)


def _ensure_configured() -> None:
    if _CURRENT_CONFIG is not None:
        return
    configure_logging(
        level=os.getenv("PIPEXEC_LOG_LEVEL", "INFO").upper(),  # type: ignore[arg-type]
        format=os.getenv("PIPEXEC_LOG_FORMAT", "structured").lower(),  # type: ignore[arg-type]
    )
