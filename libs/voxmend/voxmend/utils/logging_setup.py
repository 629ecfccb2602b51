"""Logging initialization helpers."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from voxmend.config import LoggingSettings, Settings

_CONFIGURED_ATTR = "_voxmend_configured"


def _build_handlers(cfg: LoggingSettings, log_dir: str, level: int) -> list[logging.Handler]:
    formatter = logging.Formatter(fmt=str(cfg.format), datefmt=str(cfg.datefmt))
    handlers: list[logging.Handler] = []

    if cfg.console:
        stream = logging.StreamHandler()
        stream.setLevel(level)
        stream.setFormatter(formatter)
        handlers.append(stream)

    if cfg.file:
        file_path = Path(str(cfg.file))
        if not file_path.is_absolute():
            file_path = Path(log_dir) / file_path
        file_path.parent.mkdir(parents=True, exist_ok=True)
        fh = RotatingFileHandler(
            file_path,
            maxBytes=int(cfg.max_bytes),
            backupCount=int(cfg.backup_count),
            encoding="utf-8",
        )
        fh.setLevel(level)
        fh.setFormatter(formatter)
        handlers.append(fh)
    return handlers


def setup_logging(settings: Settings, *, force: bool = False) -> logging.Logger:
    """Configure the `voxmend` logger tree from Settings.

    Provider HTTP clients log every request at INFO; those loggers are capped
    at `LOG_THIRD_PARTY_LEVEL` so segment/chunk fan-out does not flood output.
    """
    logger = logging.getLogger("voxmend")
    if getattr(logger, _CONFIGURED_ATTR, False) and not force:
        return logger

    cfg = settings.logging
    level = getattr(logging, str(cfg.level or "INFO").upper(), logging.INFO)

    for handler in list(logger.handlers):
        handler.close()
    logger.handlers = _build_handlers(cfg, settings.log_dir, level)
    logger.setLevel(level)
    logger.propagate = False

    third_party_level = getattr(logging, str(cfg.third_party_level or "WARNING").upper(), logging.WARNING)
    for name in cfg.third_party_loggers:
        logging.getLogger(name).setLevel(third_party_level)

    setattr(logger, _CONFIGURED_ATTR, True)
    return logger
