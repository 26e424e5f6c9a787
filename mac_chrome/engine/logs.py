from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(message)s"

logger = logging.getLogger("mac_chrome.engine")


def _coerce_level(level: str | int) -> int:
    if isinstance(level, str):
        level = logging.getLevelName(level.strip().upper())
        if not isinstance(level, int):
            return logging.INFO
    return level


def set_level(level: str | int) -> None:
    """Adjust the engine logger only; handlers stay with the host application."""
    logger.setLevel(_coerce_level(level))


def configure_logging(level: str | int = logging.INFO) -> None:
    """Install the root handler once; later calls only adjust the level."""
    level = _coerce_level(level)
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=level, format=LOG_FORMAT)
    logger.setLevel(level)
