"""Logging utilities."""

from .utils import LOG_FORMAT, level_from_name, setup_file_logger

__all__ = ["LOG_FORMAT", "level_from_name", "setup_file_logger"]
