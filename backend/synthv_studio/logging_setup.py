"""Package-level logging setup shared by the Streamlit entry point."""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Attach one stream handler to the package logger (safe across Streamlit reruns)."""
    logger = logging.getLogger("synthv_studio")
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    if any(getattr(handler, "_synthv", False) for handler in logger.handlers):
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._synthv = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
