"""Tests for SecureMemory, FragmentedSecret, KeyObfuscator, TimedExposure."""

from __future__ import annotations

import pytest

from jsonvault.util.memory import (
    FragmentedSecret,
    KeyObfuscator,
    SecureMemory,
    TimedExposure,
)


class TestSecureMemory:
    def test_store_and_retrieve(self):
        sm = SecureMemory(b"secret")
        assert sm.get_bytes() == b"secret"
        assert len(sm) == 6

    def test_from_string(self):
        assert SecureMemory("héllo").get_bytes() == "héllo".encode("utf-8")

    def test_clear(self):
        sm = SecureMemory(b"secret")
        sm.clear()
        assert len(sm) == 0
        with pytest.raises(ValueError, match="cleared"):
            sm.get_bytes()

    def test_double_clear_safe(self):
        sm = SecureMemory(b"x")
        sm.clear()
        sm.clear()

    def test_empty(self):
        sm = SecureMemory(b"")
        assert len(sm) == 0
        assert not sm.is_protected


class TestFragmentedSecret:
    def test_reconstruct(self):
        fs = FragmentedSecret(b"my secret data", parts=4)
        sm = fs.reconstruct()
        assert sm.get_bytes() == b"my secret data"
        sm.clear()

    def test_shares_differ_from_secret(self):
        fs = FragmentedSecret(b"a" * 32)
        assert all(p.get_bytes() != b"a" * 32 for p in fs._parts)

    def test_needs_two_parts(self):
        with pytest.raises(ValueError):
            FragmentedSecret(b"x", parts=1)

    def test_clear(self):
        fs = FragmentedSecret(b"data")
        fs.clear()
        assert fs._parts == []


class TestKeyObfuscator:
    def test_obfuscate_deobfuscate(self):
        ko = KeyObfuscator(SecureMemory(b"a" * 32))
        ko.obfuscate()
        assert ko.is_obfuscated
        recovered = ko.deobfuscate()
        assert recovered.get_bytes() == b"a" * 32
        recovered.clear()
        ko.clear()

    def test_double_obfuscate(self):
        ko = KeyObfuscator(SecureMemory(b"b" * 32))
        ko.obfuscate()
        ko.obfuscate()
        assert ko.deobfuscate().get_bytes() == b"b" * 32
        ko.clear()

    def test_cleared_raises(self):
        ko = KeyObfuscator(SecureMemory(b"c" * 32))
        ko.obfuscate()
        ko.clear()
        with pytest.raises(ValueError):
            ko.deobfuscate()


class TestTimedExposure:
    def test_context_manager(self):
        ko = KeyObfuscator(SecureMemory(b"c" * 32))
        ko.obfuscate()
        with TimedExposure(ko) as sm:
            assert sm.get_bytes() == b"c" * 32
        assert len(sm) == 0
        assert ko.is_obfuscated
        ko.clear()

    def test_remasks_when_block_raises(self):
        ko = KeyObfuscator(SecureMemory(b"d" * 32))
        ko.obfuscate()
        with pytest.raises(RuntimeError):
            with TimedExposure(ko) as sm:
                raise RuntimeError("boom")
        assert len(sm) == 0
        assert ko.is_obfuscated
        ko.clear()
