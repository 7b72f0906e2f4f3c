"""
Application log setup.

Console output goes through rich (sharing the UI console); everything is
also written to <log_dir>/echoprobe.log, truncated at startup.
"""

import logging
from pathlib import Path
from typing import Union

from rich.logging import RichHandler

from .ui import console

ROOT_LOGGER = "echoprobe"
APP_LOG_FILE = "echoprobe.log"


def get_logger(name: str = ROOT_LOGGER) -> logging.Logger:
    if name != ROOT_LOGGER and not name.startswith(ROOT_LOGGER + "."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)


def is_writable(path: Union[str, Path]) -> bool:
    """Checks a directory by writing and removing a probe file."""
    probe = Path(path) / ".write_test"
    try:
        probe.write_bytes(b"")
        probe.unlink()
    except OSError:
        return False
    return True


def init_logging(level: str = "INFO", log_dir: Union[str, Path] = "logs") -> logging.Logger:
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    if not is_writable(log_dir):
        raise OSError(f"Log directory {log_dir} is not writable")

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console_handler = RichHandler(console=console, show_path=False, rich_tracebacks=True)
    console_handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(console_handler)

    file_handler = logging.FileHandler(log_dir / APP_LOG_FILE, mode="w", encoding="utf-8")
    file_handler.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s"))
    logger.addHandler(file_handler)

    logger.propagate = False
    return logger
