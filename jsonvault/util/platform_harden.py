"""Process hardening for the CLI host: no core dumps, enough free RAM."""

from __future__ import annotations

import ctypes
import logging
import platform
import warnings

import psutil

logger = logging.getLogger("jsonvault.harden")

MIN_FREE_RAM_MB = 64


class SecurityWarning(UserWarning):
    """A protection could not be applied."""


def apply_platform_hardening() -> None:
    system = platform.system()
    if system == "Windows":
        _harden_windows()
    elif system in ("Linux", "Darwin"):
        _harden_unix()


def _harden_windows() -> None:
    try:
        kernel32 = ctypes.WinDLL("kernel32", use_last_error=True)
        if hasattr(kernel32, "SetDllDirectoryW"):
            kernel32.SetDllDirectoryW("")
            logger.debug("DLL directory restricted to system")
    except Exception as exc:
        logger.error("Error applying Windows protections: %s", exc)
        warnings.warn(SecurityWarning("DLL search path could not be restricted"))


def _harden_unix() -> None:
    try:
        import resource

        resource.setrlimit(resource.RLIMIT_CORE, (0, 0))
        logger.debug("Core dumps disabled")
    except (ImportError, ValueError, OSError) as exc:
        logger.error("Error disabling core dumps: %s", exc)
        warnings.warn(SecurityWarning(f"Core dumps could not be disabled: {exc}"))


def validate_system_requirements() -> None:
    """Raise SystemError when too little RAM is free to derive keys safely."""
    avail_mb = psutil.virtual_memory().available / (1024**2)
    if avail_mb < MIN_FREE_RAM_MB:
        raise SystemError(
            f"Insufficient RAM: {avail_mb:.0f} MB free (minimum {MIN_FREE_RAM_MB} MB)."
        )
