"""Secret handling in memory: SecureMemory, FragmentedSecret, KeyObfuscator, TimedExposure."""

from __future__ import annotations

import ctypes
import logging
import platform
import secrets
import threading
from typing import Optional, Union

logger = logging.getLogger("jsonvault.memory")

_WIPE_PASSES = (0xFF, 0x00, 0x55, 0xAA, None, 0x00)  # None = random pass


def _buffer_address(buf: bytearray) -> int:
    return ctypes.addressof(ctypes.c_char.from_buffer(buf))


# ---------------------------------------------------------------------------
#  SecureMemory
# ---------------------------------------------------------------------------
class SecureMemory:
    """A bytearray pinned in RAM (best effort) and overwritten on clear."""

    def __init__(self, data: Union[bytes, bytearray, str]):
        if isinstance(data, str):
            data = data.encode("utf-8")
        self._data = bytearray(data)
        self._size = len(self._data)
        self._locked = False
        self._lock_pages()

    def _lock_pages(self) -> None:
        if self._size == 0:
            return
        try:
            address = ctypes.c_void_p(_buffer_address(self._data))
            size = ctypes.c_size_t(self._size)
            if platform.system() == "Windows":
                kernel32 = ctypes.WinDLL("kernel32", use_last_error=True)
                self._locked = bool(kernel32.VirtualLock(address, size))
            else:
                libc = ctypes.CDLL(None)
                self._locked = libc.mlock(address, size) == 0
        except Exception as exc:
            logger.debug("Memory locking unavailable: %s", exc)

    def _unlock_pages(self) -> None:
        try:
            address = ctypes.c_void_p(_buffer_address(self._data))
            size = ctypes.c_size_t(self._size)
            if platform.system() == "Windows":
                ctypes.WinDLL("kernel32", use_last_error=True).VirtualUnlock(address, size)
            else:
                ctypes.CDLL(None).munlock(address, size)
        except Exception as exc:
            logger.debug("munlock failed: %s", exc)

    # -- public API ---------------------------------------------------------
    def get_bytes(self) -> bytes:
        if not self._data:
            raise ValueError("Memory already cleared")
        return bytes(self._data)

    def clear(self) -> None:
        if not self._data:
            return
        try:
            for fill in _WIPE_PASSES:
                if fill is None:
                    self._data[:] = secrets.token_bytes(self._size)
                else:
                    self._data[:] = bytes([fill]) * self._size
            if self._locked:
                self._unlock_pages()
        finally:
            self._data = bytearray()
            self._size = 0
            self._locked = False

    def __len__(self) -> int:
        return self._size

    def __del__(self):
        self.clear()

    @property
    def is_protected(self) -> bool:
        return self._locked


# ---------------------------------------------------------------------------
#  FragmentedSecret
# ---------------------------------------------------------------------------
class FragmentedSecret:
    """Splits a secret into *parts* XOR shares; all are needed to rebuild it."""

    def __init__(self, data: Union[bytes, bytearray], parts: int = 3):
        if parts < 2:
            raise ValueError("Need at least 2 fragments")
        raw = bytes(data)
        masks = [secrets.token_bytes(len(raw)) for _ in range(parts - 1)]
        last = bytearray(raw)
        for mask in masks:
            for i, b in enumerate(mask):
                last[i] ^= b
        self._parts = [SecureMemory(m) for m in masks] + [SecureMemory(last)]

    def reconstruct(self) -> SecureMemory:
        out = bytearray(self._parts[-1].get_bytes())
        for part in self._parts[:-1]:
            for i, b in enumerate(part.get_bytes()):
                out[i] ^= b
        return SecureMemory(out)

    def clear(self) -> None:
        for part in self._parts:
            part.clear()
        self._parts = []


# ---------------------------------------------------------------------------
#  KeyObfuscator
# ---------------------------------------------------------------------------
class KeyObfuscator:
    """Holds a key as a random mask plus fragmented masked shares.

    The plain key only exists while a :class:`TimedExposure` is open.
    """

    def __init__(self, key: SecureMemory):
        self._key: Optional[SecureMemory] = key
        self._mask: Optional[SecureMemory] = None
        self._frags: Optional[FragmentedSecret] = None
        self._lock = threading.Lock()

    @property
    def is_obfuscated(self) -> bool:
        return self._frags is not None

    def obfuscate(self) -> None:
        with self._lock:
            if self._frags is not None:
                # re-mask with a fresh random mask
                self._key = self._reveal_unlocked()
                self._drop_shares()
            if self._key is None or len(self._key) == 0:
                return
            plain = self._key.get_bytes()
            mask = secrets.token_bytes(len(plain))
            self._mask = SecureMemory(mask)
            self._frags = FragmentedSecret(bytes(a ^ b for a, b in zip(plain, mask)))
            self._key.clear()
            self._key = None

    def deobfuscate(self) -> SecureMemory:
        with self._lock:
            return self._reveal_unlocked()

    def _reveal_unlocked(self) -> SecureMemory:
        if self._frags is None:
            if self._key is None:
                raise ValueError("Key already cleared")
            return SecureMemory(self._key.get_bytes())
        masked = self._frags.reconstruct()
        try:
            mask = self._mask.get_bytes()
            return SecureMemory(bytes(a ^ b for a, b in zip(masked.get_bytes(), mask)))
        finally:
            masked.clear()

    def _drop_shares(self) -> None:
        if self._mask:
            self._mask.clear()
            self._mask = None
        if self._frags:
            self._frags.clear()
            self._frags = None

    def clear(self) -> None:
        with self._lock:
            self._drop_shares()
            if self._key:
                self._key.clear()
                self._key = None


# ---------------------------------------------------------------------------
#  TimedExposure
# ---------------------------------------------------------------------------
class TimedExposure:
    """Context manager revealing an obfuscated key for one block.

    On exit the plain copy is wiped and the key is re-masked, also when
    the block raised.
    """

    def __init__(self, ko: KeyObfuscator):
        self.ko = ko
        self._plain: Optional[SecureMemory] = None

    def __enter__(self) -> SecureMemory:
        self._plain = self.ko.deobfuscate()
        return self._plain

    def __exit__(self, exc_type, exc, tb):
        if self._plain is not None:
            self._plain.clear()
            self._plain = None
        self.ko.obfuscate()
        return False
