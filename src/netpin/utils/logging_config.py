"""Logging configuration for netpin.

Provides configurable logging with:
- File-based logging with rotation
- Console output for the service journal
- Timing decorator and context manager for the slow paths
  (state snapshots, applies)

Environment Variables:
    NETPIN_LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (default: INFO)
    NETPIN_LOG_FILE: Path to log file (default: /var/log/netpin/netpin.log)
    NETPIN_LOG_MAX_SIZE: Max log file size in MB (default: 10)
    NETPIN_LOG_BACKUPS: Number of backup files to keep (default: 5)

Usage:
    from netpin.utils.logging_config import setup_logging, timed

    setup_logging()  # Call once at startup

    @timed("snapshot")
    def snapshot(self):
        ...

    with timed_section("apply", target="/etc/nmstate/01-eth0.yml"):
        ...
"""
import functools
import logging
import os
import time
from contextlib import contextmanager
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Callable, Any

# Performance logger - separate from main logger for easy filtering
perf_logger = logging.getLogger("netpin.perf")
main_logger = logging.getLogger("netpin")

DEFAULT_LOG_FILE = Path("/var/log/netpin/netpin.log")


def get_log_level() -> int:
    """Get log level from environment."""
    level_str = os.environ.get("NETPIN_LOG_LEVEL", "INFO").upper()
    return getattr(logging, level_str, logging.INFO)


def get_log_file() -> Path:
    """Get log file path from environment."""
    path_str = os.environ.get("NETPIN_LOG_FILE", str(DEFAULT_LOG_FILE))
    return Path(path_str)


def setup_logging(log_file: Optional[Path] = None, console: bool = True) -> None:
    """Configure logging for the application.

    Sets up:
    - Console handler (INFO+ by default, respects NETPIN_LOG_LEVEL)
    - File handler with rotation (DEBUG level - captures everything)

    The file handler is skipped with a warning if the log directory
    cannot be created; the service must still run on a read-only /var.
    """
    log_level = get_log_level()
    log_file = log_file or get_log_file()
    max_size_mb = int(os.environ.get("NETPIN_LOG_MAX_SIZE", "10"))
    backup_count = int(os.environ.get("NETPIN_LOG_BACKUPS", "5"))

    main_format = logging.Formatter(
        "%(asctime)s.%(msecs)03d | %(name)-28s | %(levelname)-7s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )
    perf_format = logging.Formatter(
        "%(asctime)s.%(msecs)03d | PERF | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    root_logger = logging.getLogger("netpin")
    root_logger.setLevel(logging.DEBUG)  # Capture all, handlers filter
    root_logger.handlers.clear()
    perf_logger.handlers.clear()

    if console:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(log_level)
        console_handler.setFormatter(main_format)
        root_logger.addHandler(console_handler)

    try:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=max_size_mb * 1024 * 1024,
            backupCount=backup_count,
            encoding="utf-8"
        )
    except OSError as e:
        root_logger.warning(f"File logging disabled, cannot open {log_file}: {e}")
        file_handler = None

    if file_handler is not None:
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(main_format)
        root_logger.addHandler(file_handler)

        perf_handler = RotatingFileHandler(
            log_file.parent / "netpin-perf.log",
            maxBytes=max_size_mb * 1024 * 1024,
            backupCount=backup_count,
            encoding="utf-8"
        )
        perf_handler.setLevel(logging.DEBUG)
        perf_handler.setFormatter(perf_format)
        perf_logger.addHandler(perf_handler)

    perf_logger.setLevel(logging.DEBUG)
    perf_logger.propagate = False

    root_logger.info(
        f"Logging initialized: level={logging.getLevelName(log_level)}, "
        f"file={log_file if file_handler is not None else 'disabled'}"
    )


def _log_timing(operation: str, target: Optional[str], elapsed: float,
                error: Optional[Exception] = None, extra: str = "") -> None:
    msg = f"{operation:20s} | {target or 'N/A':30s} | {elapsed:8.2f}ms | "
    msg += f"FAIL: {error}" if error is not None else "OK"
    if extra:
        msg += f" | {extra}"
    if error is not None:
        perf_logger.warning(msg)
    else:
        perf_logger.info(msg)


def timed(operation: str, target: Optional[str] = None):
    """Decorator to log execution time of a function.

    Args:
        operation: Name of the operation (e.g., "snapshot", "apply")
        target: Optional target label (a path, an interface)

    Usage:
        @timed("snapshot")
        def snapshot(self):
            ...
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            start = time.perf_counter()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                _log_timing(operation, target, (time.perf_counter() - start) * 1000, e)
                raise
            _log_timing(operation, target, (time.perf_counter() - start) * 1000)
            return result

        return wrapper

    return decorator


@contextmanager
def timed_section(operation: str, target: Optional[str] = None, **extra):
    """Context manager for timing code sections.

    Usage:
        with timed_section("apply", target=str(path)):
            engine.apply(fd)
    """
    start = time.perf_counter()
    extra_str = " | ".join(f"{k}={v}" for k, v in extra.items()) if extra else ""

    try:
        yield
    except Exception as e:
        _log_timing(operation, target, (time.perf_counter() - start) * 1000, e, extra_str)
        raise
    _log_timing(operation, target, (time.perf_counter() - start) * 1000, extra=extra_str)
