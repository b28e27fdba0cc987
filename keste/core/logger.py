from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
import sys

from .errors import ConfigError
from .settings import load_settings


_LOGGER: logging.Logger | None = None


def get_logger(log_dir: Path | None = None) -> logging.Logger:
    """Return the configured application logger writing to <home>/logs/app.log.

    Creates the directory if needed. Uses rotating file handler. When the
    settings or the log directory are unusable the logger keeps only its
    console handler, so logging never fails the caller.
    """
    global _LOGGER
    if _LOGGER is not None:
        return _LOGGER

    level = "INFO"
    file_problem: str | None = None
    try:
        settings = load_settings()
    except ConfigError as exc:
        file_problem = str(exc)
    else:
        level = settings.log_level
        if log_dir is None:
            log_dir = settings.home / "logs"

    logger = logging.getLogger("keste")
    logger.setLevel(getattr(logging, level, logging.INFO))
    logger.propagate = False

    fmt = logging.Formatter(
        fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(fmt)
    logger.addHandler(console)

    if log_dir is not None:
        base = Path(log_dir)
        try:
            base.mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(
                base / "app.log", maxBytes=2 * 1024 * 1024, backupCount=3, encoding="utf-8"
            )
        except OSError as exc:
            file_problem = f"cannot write logs under {base}: {exc}"
        else:
            file_handler.setFormatter(fmt)
            logger.addHandler(file_handler)

    _LOGGER = logger
    if file_problem:
        logger.warning("File logging disabled: %s", file_problem)
    return logger
