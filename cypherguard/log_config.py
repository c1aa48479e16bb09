"""Logging configuration for cypherguard.

Uses loguru with automatic rotation and structured logging.
Logs are stored in ~/.cypherguard/logs/ (override with CYPHERGUARD_LOG_DIR) with:
- Rotation at 10 MB per file
- Retention of 7 days
- Compression of old logs

Environment variables for log level control:
- CYPHERGUARD_LOG_LEVEL: Global log level (default: INFO)
- CYPHERGUARD_LOG_FILTERS: Filter compiler log level
- CYPHERGUARD_LOG_VALIDATION: Query validator log level
"""

import os
import sys
from contextlib import contextmanager
from pathlib import Path
from time import perf_counter

from loguru import logger

# Get global log level from environment
_global_log_level = os.getenv("CYPHERGUARD_LOG_LEVEL", "INFO").upper()

# Component-specific log level overrides
_component_log_levels: dict[str, str] = {
    "filters": os.getenv("CYPHERGUARD_LOG_FILTERS", "").upper(),
    "validation": os.getenv("CYPHERGUARD_LOG_VALIDATION", "").upper(),
}


def _log_filter(record) -> bool:
    """Filter log records based on global and component-specific log levels.

    Allows component-specific log level overrides while respecting global level.
    """
    name = record["extra"].get("name", "")

    for component, level in _component_log_levels.items():
        if level and component in name:
            try:
                return record["level"].no >= logger.level(level).no
            except ValueError:
                pass  # Invalid level, fall through to global

    try:
        return record["level"].no >= logger.level(_global_log_level).no
    except ValueError:
        return True


# Remove default handler
logger.remove()

_log_dir = Path(os.getenv("CYPHERGUARD_LOG_DIR", str(Path.home() / ".cypherguard" / "logs")))
_log_dir.mkdir(parents=True, exist_ok=True)

# Console handler - uses filter for level control (allows component overrides)
logger.add(
    sys.stderr,
    level=0,  # Accept all, let filter decide
    filter=_log_filter,
    format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{extra[name]}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>",
    colorize=True,
)

# File handler - DEBUG level, with rotation
logger.add(
    _log_dir / "cypherguard_{time:YYYY-MM-DD}.log",
    level="DEBUG",
    format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {extra[name]}:{function}:{line} | {message}",
    rotation="10 MB",
    retention="7 days",
    compression="zip",
    enqueue=True,  # Thread-safe
)

# Every record carries a component name, even when logged through the bare logger
logger.configure(extra={"name": "cypherguard"})


def get_logger(name: str):
    """Get a logger with the given name bound to context.

    Args:
        name: Module or component name

    Returns:
        Logger instance with name bound
    """
    return logger.bind(name=name)


@contextmanager
def log_timing(operation: str, log_instance=None, level: str = "debug"):
    """Context manager for timing operations with automatic logging.

    Args:
        operation: Description of the operation being timed
        log_instance: Logger instance (uses global logger if None)
        level: Log level for the timing message (default: debug)

    Yields:
        dict with 'elapsed_ms' key (populated after context exits)

    Example:
        with log_timing("query validation", log) as timing:
            chain.validate(query, schema)
        # timing['elapsed_ms'] now contains the elapsed time
    """
    log_fn = log_instance or logger
    timing = {"elapsed_ms": 0.0}
    start = perf_counter()
    try:
        yield timing
    finally:
        timing["elapsed_ms"] = (perf_counter() - start) * 1000
        getattr(log_fn, level)(f"{operation}: {timing['elapsed_ms']:.1f}ms")


__all__ = ["logger", "get_logger", "log_timing"]
