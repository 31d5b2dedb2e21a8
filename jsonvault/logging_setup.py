"""Logging setup: rotating file, restrictive permissions, secrets masked in arguments."""

from __future__ import annotations

import logging
import logging.handlers
import os
import platform
from pathlib import Path

from jsonvault.config import Config
from jsonvault.paths import get_log_path

LOGGER_NAME = "jsonvault"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class SecureFormatter(logging.Formatter):
    """Replaces binary and long string arguments with their length."""

    def format(self, record):
        if record.args and isinstance(record.args, tuple):
            record.args = tuple(_mask(arg) for arg in record.args)
        return super().format(record)


def _mask(arg):
    if isinstance(arg, (bytes, bytearray)):
        return f"<{len(arg)} bytes>"
    if isinstance(arg, str) and len(arg) > 50:
        return f"<{len(arg)} chars>"
    return arg


def setup_secure_logging(log_dir: Path, level: int = logging.INFO) -> logging.Logger:
    """Attach a rotating file handler to the *jsonvault* logger."""
    log_dir.mkdir(parents=True, exist_ok=True)
    if platform.system() != "Windows":
        try:
            os.chmod(log_dir, 0o700)
        except OSError:
            pass

    log_file = get_log_path(log_dir)
    root_logger = logging.getLogger(LOGGER_NAME)
    root_logger.setLevel(level)

    if not root_logger.handlers:
        handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=Config.LOG_MAX_BYTES,
            backupCount=Config.LOG_BACKUP_COUNT,
            encoding="utf-8",
        )
        handler.setFormatter(SecureFormatter(LOG_FORMAT))
        root_logger.addHandler(handler)
    root_logger.propagate = False

    if platform.system() != "Windows":
        try:
            os.chmod(log_file, 0o600)
        except OSError:
            pass

    return root_logger
