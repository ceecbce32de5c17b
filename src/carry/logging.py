"""structlog configuration for the rebalancer.

Every record goes through the stdlib root handler so ccxt and aiohttp log
lines share the same renderer as our own events. Fields bound with
``bind_cycle_context`` live in contextvars and therefore follow the
gathered fetches and background notification tasks of a cycle.
"""

import logging
from typing import Literal

import structlog

LogFormat = Literal["console", "json"]

# Third-party loggers that emit a line per HTTP round-trip at DEBUG
_NOISY_LOGGERS = ("ccxt", "ccxt.base.exchange", "aiohttp.access")

_CYCLE_KEYS = ("cycle", "cycle_kind")


def _pre_chain() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]


def _renderer(log_format: str) -> structlog.types.Processor:
    if log_format.lower() == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer()


def setup_logging(log_level: str = "INFO", log_format: LogFormat = "console") -> None:
    """Route structlog through a single stdlib root handler.

    Args:
        log_level: Root level name; unknown names fall back to INFO.
        log_format: "json" for machine-readable lines, "console" otherwise.
    """
    structlog.configure(
        processors=[*_pre_chain(), structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=_pre_chain(),
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(log_format),
            ],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def bind_cycle_context(cycle: int, cycle_kind: str) -> None:
    """Tag every event until ``clear_cycle_context`` with the cycle identity."""
    structlog.contextvars.bind_contextvars(cycle=cycle, cycle_kind=cycle_kind)


def clear_cycle_context() -> None:
    structlog.contextvars.unbind_contextvars(*_CYCLE_KEYS)
