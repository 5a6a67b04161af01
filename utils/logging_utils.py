import logging

import structlog
from structlog.stdlib import add_log_level, add_logger_name


def resolve_level(level: int | str) -> int:
    """Accepts ``logging.DEBUG`` or ``"debug"`` style levels."""
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(str(level).upper())
    if not isinstance(resolved, int):
        raise ValueError(f"Unknown log level: {level}")
    return resolved


def setup_logging(
    level: int | str = logging.INFO, colors: bool = True, cache_loggers: bool = True
) -> None:
    """
    Configure structlog on top of standard logging for console output.

    Pass ``cache_loggers=False`` for a provisional setup that will be replaced
    once the real level is known; cached loggers ignore later reconfiguration.
    """
    numeric_level = resolve_level(level)
    logging.basicConfig(level=numeric_level, format="%(message)s", force=True)
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            add_logger_name,
            add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=False),
            structlog.dev.ConsoleRenderer(colors=colors),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=cache_loggers,
    )
