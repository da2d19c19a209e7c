"""
logging_utils.py
Application-wide logging helpers.

Modules call ``get_logger(__name__)``; the root handler is installed once so
Streamlit reruns do not stack duplicate handlers. ``configure_root_logger``
may be called again later to apply the configured level.
"""

from __future__ import annotations

import logging

_LOGGER_INITIALISED = False


def _install_handler() -> None:
    global _LOGGER_INITIALISED
    if _LOGGER_INITIALISED:
        return

    handler = logging.StreamHandler()
    handler.setFormatter(
        logging.Formatter(
            "[%(asctime)s] [%(levelname)s] %(name)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.INFO)
    root_logger.addHandler(handler)
    _LOGGER_INITIALISED = True


def configure_root_logger(level: int | str = logging.INFO) -> None:
    """Install the shared handler (once) and set the root level."""
    _install_handler()
    logging.getLogger().setLevel(level)


def get_logger(name: str | None = None) -> logging.Logger:
    _install_handler()
    return logging.getLogger(name)
