"""Centralised settings and config.ini I/O."""

from __future__ import annotations

import configparser
import logging
import os
import tempfile
from pathlib import Path

from jsonvault.vault.models import (
    DEFAULT_ALGORITHM_LABEL,
    DEFAULT_SECURITY_LEVEL,
    VaultMetadata,
)

logger = logging.getLogger("jsonvault.config")

CONFIG_FILENAME = "config.ini"


class Config:
    """Centralised settings."""

    # Storage
    DEFAULT_VAULT_FILENAME = "passwords.json"
    MAX_VAULT_SIZE = 10 * 1024 * 1024  # 10 MB

    # Logging
    LOG_MAX_BYTES = 10 * 1024 * 1024
    LOG_BACKUP_COUNT = 3

    @staticmethod
    def get_defaults(data_dir: Path | None = None) -> dict:
        """Read user defaults from config.ini, falling back to built-ins."""
        if data_dir is None:
            from jsonvault.paths import get_data_dir

            data_dir = get_data_dir()

        defaults = {
            "algorithm": DEFAULT_ALGORITHM_LABEL,
            "security_level": DEFAULT_SECURITY_LEVEL,
            "vault_filename": Config.DEFAULT_VAULT_FILENAME,
        }
        config_path = data_dir / CONFIG_FILENAME
        if not config_path.exists():
            return defaults

        cfg = configparser.ConfigParser()
        try:
            cfg.read(config_path, encoding="utf-8")
        except configparser.Error as exc:
            logger.warning("Ignoring unreadable %s: %s", config_path, exc)
            return defaults

        defaults["algorithm"] = cfg.get(
            "metadata", "algorithm", fallback=defaults["algorithm"]
        )
        defaults["security_level"] = cfg.get(
            "metadata", "security_level", fallback=defaults["security_level"]
        )
        filename = cfg.get("storage", "vault_filename", fallback="").strip()
        # a bare file name only; paths stay under the data dir
        if filename and Path(filename).name == filename:
            defaults["vault_filename"] = filename
        return defaults

    @staticmethod
    def default_metadata(data_dir: Path | None = None) -> VaultMetadata:
        d = Config.get_defaults(data_dir)
        return VaultMetadata(d["algorithm"], d["security_level"])

    @staticmethod
    def config_exists(data_dir: Path) -> bool:
        return (data_dir / CONFIG_FILENAME).exists()


# ============================================================================
#  Atomic config writer
# ============================================================================
def write_config(data_dir: Path, values: dict) -> Path:
    """Write *values* (same keys as :meth:`Config.get_defaults`) to config.ini."""
    data_dir.mkdir(parents=True, exist_ok=True)
    if os.name != "nt":
        try:
            os.chmod(data_dir, 0o700)
        except OSError:
            pass

    cfg = configparser.ConfigParser()
    cfg["metadata"] = {
        "algorithm": values.get("algorithm", DEFAULT_ALGORITHM_LABEL),
        "security_level": values.get("security_level", DEFAULT_SECURITY_LEVEL),
    }
    cfg["storage"] = {
        "vault_filename": values.get("vault_filename", Config.DEFAULT_VAULT_FILENAME),
    }

    config_path = data_dir / CONFIG_FILENAME
    fd = tempfile.NamedTemporaryFile(
        mode="w",
        dir=data_dir,
        prefix="cfg_tmp_",
        suffix=".ini",
        delete=False,
        encoding="utf-8",
    )
    try:
        cfg.write(fd)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        tmp = Path(fd.name)
        if os.name != "nt":
            os.chmod(tmp, 0o600)
        tmp.replace(config_path)
    except BaseException:
        fd.close()
        Path(fd.name).unlink(missing_ok=True)
        raise
    return config_path
