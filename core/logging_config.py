# core/logging_config.py
"""Logger raíz del panel (namespace `panel`)."""

import logging
import sys

LOGGER_NAME = "panel"


def get_logger(name: str) -> logging.Logger:
    """Logger hijo de `panel` (p.ej. get_logger("sheets") -> panel.sheets)."""
    return logging.getLogger(f"{LOGGER_NAME}.{name}")


def setup_logging(level: int | str = logging.INFO) -> logging.Logger:
    """
    Configura el logger `panel` con salida a consola.
    Streamlit re-ejecuta el script en cada interacción: limpiamos handlers para no duplicar líneas.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)

    if logger.hasHandlers():
        logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%H:%M:%S",
    ))
    logger.addHandler(handler)
    logger.propagate = False
    return logger
