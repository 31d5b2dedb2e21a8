"""StorageBackend: atomic writes, backup/restore, file locking, permissions."""

from __future__ import annotations

import logging
import os
import platform
import shutil
import tempfile
import time
from pathlib import Path

from jsonvault.config import Config
from jsonvault.crypto.formats import envelope_from_bytes
from jsonvault.errors import MalformedEnvelope, VaultError

logger = logging.getLogger("jsonvault.storage")

_TMP_PREFIX = "jv_tmp_"


class StorageBackend:
    """Vault file I/O. Knows nothing about the envelope beyond backup checks."""

    def __init__(self, vault_path: Path, lock: bool = True):
        self.vault_path = Path(vault_path)
        self.backup_path = self.vault_path.parent / (self.vault_path.name + ".backup")
        self.lock_path = self.vault_path.parent / (self.vault_path.name + ".lock")
        self._lock_file = None

        self.vault_path.parent.mkdir(parents=True, exist_ok=True)
        if lock:
            self._acquire_lock()

    # -- locking ------------------------------------------------------------
    def _acquire_lock(self) -> None:
        try:
            self.lock_path.touch(mode=0o600, exist_ok=True)
            self._lock_file = open(self.lock_path, "r+b")
            if platform.system() != "Windows":
                import fcntl

                fcntl.flock(self._lock_file.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
        except OSError as exc:
            if self._lock_file is not None:
                self._lock_file.close()
                self._lock_file = None
            raise RuntimeError("Vault file is already in use by another process") from exc

    def close(self) -> None:
        """Release the lock file."""
        if self._lock_file is None:
            return
        try:
            self._lock_file.close()
        finally:
            self._lock_file = None
        try:
            self.lock_path.unlink()
        except OSError:
            pass

    def __enter__(self) -> StorageBackend:
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    # -- read / write -------------------------------------------------------
    def write_atomic(self, data: bytes) -> None:
        if len(data) > Config.MAX_VAULT_SIZE:
            raise VaultError(f"Vault too large: {len(data)} bytes")

        if self.vault_path.exists():
            shutil.copy2(self.vault_path, self.backup_path)
            self._secure_permissions(self.backup_path)

        old_umask = os.umask(0o077) if os.name != "nt" else None
        try:
            with tempfile.NamedTemporaryFile(
                mode="wb",
                dir=self.vault_path.parent,
                prefix=_TMP_PREFIX,
                suffix=".json",
                delete=False,
            ) as tmp:
                tmp.write(data)
                tmp.flush()
                os.fsync(tmp.fileno())
                temp_path = Path(tmp.name)
        finally:
            if old_umask is not None:
                os.umask(old_umask)

        self._secure_permissions(temp_path)
        temp_path.replace(self.vault_path)
        self._secure_permissions(self.vault_path)
        self._cleanup_temp_files()
        logger.info("Vault written (%d bytes)", len(data))

    def read(self) -> bytes:
        if not self.vault_path.exists():
            raise FileNotFoundError(f"Vault not found: {self.vault_path}")

        size = self.vault_path.stat().st_size
        if size > Config.MAX_VAULT_SIZE:
            raise VaultError(f"Vault too large: {size} bytes (max {Config.MAX_VAULT_SIZE})")

        if platform.system() != "Windows":
            if self.vault_path.stat().st_mode & 0o077:
                logger.warning("Vault permissions too open, fixing...")
                os.chmod(self.vault_path, 0o600)

        return self.vault_path.read_bytes()

    def exists(self) -> bool:
        return self.vault_path.exists()

    # -- backup / restore ---------------------------------------------------
    def verify_backup_integrity(self) -> bool:
        """True if the backup exists and parses as an envelope."""
        if not self.backup_path.exists():
            return False
        try:
            envelope_from_bytes(self.backup_path.read_bytes())
        except MalformedEnvelope as exc:
            logger.error("Backup corrupted: %s", exc)
            return False
        return True

    def restore_backup(self) -> bool:
        if not self.verify_backup_integrity():
            return False
        shutil.copy2(self.backup_path, self.vault_path)
        self._secure_permissions(self.vault_path)
        logger.info("Vault restored from backup")
        return True

    # -- permissions --------------------------------------------------------
    def _secure_permissions(self, path: Path) -> None:
        if platform.system() == "Windows":
            return
        try:
            os.chmod(path, 0o600)
        except OSError as exc:
            logger.warning("Error setting permissions on %s: %s", path, exc)

    def _cleanup_temp_files(self) -> None:
        cutoff = time.time() - 3600
        for tmp in self.vault_path.parent.glob(_TMP_PREFIX + "*"):
            try:
                if tmp.stat().st_mtime < cutoff:
                    tmp.unlink()
            except OSError:
                pass
