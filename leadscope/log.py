"""Logging setup - one rich handler on the root logger."""

import logging
import os
from typing import Optional

from rich.logging import RichHandler

_configured = False


def configure(level: Optional[str] = None) -> None:
    """Install the console handler. Safe to call more than once."""
    global _configured

    level_name = (level or os.environ.get("LOG_LEVEL") or _settings_level()).upper()
    root = logging.getLogger()
    root.setLevel(getattr(logging, level_name, logging.INFO))

    if _configured or root.handlers:
        _configured = True
        return

    handler = RichHandler(rich_tracebacks=True, show_path=False)
    handler.setFormatter(logging.Formatter("%(name)s  %(message)s", datefmt="[%X]"))
    root.addHandler(handler)
    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Named logger; configures the root handler on first use."""
    if not _configured:
        configure()
    return logging.getLogger(name)


def _settings_level() -> str:
    from config.settings import settings
    return settings.log_level
