"""structlog setup for applications embedding the client.

Client modules only call `structlog.get_logger()`; nothing is configured on
import. Applications call `configure_logging` once at startup, or let
`RemoteClientBuilder.from_settings` do it.
"""

import logging
import sys
from typing import TextIO

import structlog


def _resolve_level(level: int | str) -> int:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        msg = f"Unknown log level: {level!r}"
        raise ValueError(msg)
    return resolved


def configure_logging(
    level: int | str = logging.INFO,
    output: TextIO = sys.stderr,
    json_format: bool = True,
) -> None:
    """Route client log events through structlog.

    Request-scoped events pick up the `request_id` the facade binds into
    context variables for the duration of a call.

    Args:
        level: Minimum level, as a number or a name such as "DEBUG".
        output: Stream rendered events are written to.
        json_format: Render JSON lines; otherwise colored console output.

    Raises:
        ValueError: If `level` is not a known level name.
    """
    resolved = _resolve_level(level)
    renderer: structlog.types.Processor = (
        structlog.processors.JSONRenderer(sort_keys=True)
        if json_format
        else structlog.dev.ConsoleRenderer(colors=True)
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(resolved),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=output),
        cache_logger_on_first_use=False,
    )

    # httpx and httpcore log through the standard library
    logging.basicConfig(format="%(message)s", stream=output, level=resolved)


def get_logger(component: str | None = None) -> structlog.stdlib.BoundLogger:
    """Logger bound to a component name.

    Args:
        component: Value of the `component` field, if any.

    Returns:
        Bound logger.
    """
    logger: structlog.stdlib.BoundLogger = structlog.get_logger()
    if component is not None:
        return logger.bind(component=component)
    return logger


def bind_request_context(request_id: str) -> None:
    """Attach `request_id` to every event logged in the current context."""
    structlog.contextvars.bind_contextvars(request_id=request_id)


def clear_request_context() -> None:
    """Remove the request id bound by `bind_request_context`."""
    structlog.contextvars.unbind_contextvars("request_id")
