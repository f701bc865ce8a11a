"""
Logging setup for the chat organizer and the provider libraries it drives.
"""
import logging
import sys
from pathlib import Path
from typing import Optional, Union

APP_LOGGER = "chat_organizer"
LOG_FILE = Path("chat_organizer.log")
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"

# LiteLLM and the HTTP clients log every request at INFO.
NOISY_LOGGERS = ("LiteLLM", "litellm", "httpx", "aiohttp.access")


def setup_logging(
    level: int = logging.INFO,
    log_file: Optional[Union[str, Path]] = LOG_FILE,
) -> logging.Logger:
    """Configure the application logger once and return it.

    Records at ``level`` and above go to stderr. When ``log_file`` is set,
    everything from DEBUG up is also appended to that file. Provider library
    loggers are held at WARNING unless ``level`` is DEBUG.
    """
    logger = logging.getLogger(APP_LOGGER)
    if logger.handlers:
        return logger

    logger.setLevel(logging.DEBUG)
    fmt = logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(level)
    console.setFormatter(fmt)
    logger.addHandler(console)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(fmt)
        logger.addHandler(file_handler)

    library_level = logging.DEBUG if level <= logging.DEBUG else logging.WARNING
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(library_level)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Child logger ``chat_organizer.<name>``."""
    return logging.getLogger(f"{APP_LOGGER}.{name}")
