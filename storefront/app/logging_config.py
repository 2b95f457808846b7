"""Logging bootstrap for the storefront controller."""
from __future__ import annotations

import logging
from logging.config import dictConfig
from pathlib import Path
from typing import Dict, Mapping, Optional


def configure_logging(
    level: str = "INFO",
    log_dir: Optional[Path] = None,
    retention_days: int = 14,
    module_levels: Optional[Mapping[str, str]] = None,
) -> None:
    """
    Console + daily-rotated runtime log for the kiosk.

    ``module_levels`` overrides single loggers, e.g. ``{"storefront.app.sensors": "DEBUG"}``
    to trace every classified sample without raising the root level.
    """

    if log_dir is None:
        log_dir = Path(__file__).resolve().parents[2] / "logs"
    log_dir = Path(log_dir).expanduser()
    log_dir.mkdir(parents=True, exist_ok=True)
    level = level.upper()

    loggers: Dict[str, Dict[str, object]] = {
        # Per-sample access logs would drown the motion feed.
        "uvicorn.access": {"level": "WARNING"},
    }
    for name, module_level in (module_levels or {}).items():
        loggers[name] = {"level": module_level.upper()}

    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "formatters": {
                "default": {
                    "format": "%(asctime)s | %(levelname)s | %(name)s | %(message)s",
                }
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                },
                "runtime_file": {
                    "class": "logging.handlers.TimedRotatingFileHandler",
                    "formatter": "default",
                    "filename": str(log_dir / "storefront-runtime.log"),
                    "when": "midnight",
                    "backupCount": max(int(retention_days), 1),
                    "utc": True,
                    "delay": True,
                    "encoding": "utf-8",
                },
            },
            "loggers": loggers,
            "root": {"level": level, "handlers": ["console", "runtime_file"]},
        }
    )
    logging.getLogger(__name__).debug(
        "Logging configured (level=%s, dir=%s, overrides=%s)", level, log_dir, sorted(loggers)
    )


__all__ = ["configure_logging"]
