# Copyright (c) Meta Platforms, Inc. and affiliates.
# Modifications copyright (c) 2025 Logan Martel.
# Adapted from https://github.com/meta-pytorch/KernelAgent (Apache-2.0).

"""Logging helpers (rotating file logs)."""

from __future__ import annotations

import logging

from logging.handlers import RotatingFileHandler
from pathlib import Path

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def setup_file_logger(
    log_file: Path,
    name: str = "patterncheck",
    *,
    level: int = logging.INFO,
) -> logging.Logger:
    """Attach a rotating file handler to ``name`` (idempotent per file)."""

    log_file = Path(log_file)
    log_file.parent.mkdir(parents=True, exist_ok=True)
    logger = logging.getLogger(name)
    logger.setLevel(level)
    marker = str(log_file.resolve())
    for handler in logger.handlers:
        if (
            isinstance(handler, RotatingFileHandler)
            and getattr(handler, "_tap_tag", None) == marker
        ):
            handler.setLevel(level)
            return logger
    handler = RotatingFileHandler(
        log_file, maxBytes=2_000_000, backupCount=3, encoding="utf-8"
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler._tap_tag = marker  # type: ignore[attr-defined]
    logger.addHandler(handler)
    return logger


def level_from_name(name: str, default: int = logging.WARNING) -> int:
    value = logging.getLevelName(str(name).upper())
    return value if isinstance(value, int) else default
