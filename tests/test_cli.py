"""Tests for the command-line host."""

from __future__ import annotations

import json

import pytest

from jsonvault import main as cli


@pytest.fixture
def answers(monkeypatch):
    """Queue of responses returned by getpass."""
    queue = []
    monkeypatch.setattr(cli, "getpass", lambda prompt="": queue.pop(0))
    return queue


@pytest.fixture
def run(tmp_path):
    vault_file = tmp_path / "passwords.json"

    def _run(*argv):
        return cli.main(["--file", str(vault_file), "--data-dir", str(tmp_path / "data"), *argv])

    _run.vault_file = vault_file
    return _run


class TestNew:
    def test_encrypted(self, run, answers):
        answers += ["hunter2", "hunter2"]
        assert run("new") == 0
        doc = json.loads(run.vault_file.read_text())
        assert doc["iv"] and doc["salt"]

    def test_plaintext_warns(self, run, answers, capsys):
        answers += ["", ""]
        assert run("new", "--security-level", "128-bit") == 0
        assert "UNENCRYPTED" in capsys.readouterr().err
        doc = json.loads(run.vault_file.read_text())
        assert json.loads(doc["data"])["metadata"]["securityLevel"] == "128-bit"

    def test_mismatch(self, run, answers, capsys):
        answers += ["a", "b"]
        assert run("new") == 1
        assert "do not match" in capsys.readouterr().err

    def test_refuses_overwrite(self, run, answers):
        answers += ["pw", "pw"]
        run("new")
        assert run("new") == 1


class TestEntries:
    def test_add_list_show(self, run, answers, capsys):
        answers += ["hunter2", "hunter2"]
        run("new")
        answers += ["hunter2", "s3cr3t"]
        assert run("add", "--site", "example.com", "--username", "alice") == 0

        answers += ["hunter2"]
        assert run("list") == 0
        out = capsys.readouterr().out
        assert "example.com" in out and "s3cr3t" not in out

        answers += ["hunter2"]
        assert run("show", "1") == 0
        assert "s3cr3t" in capsys.readouterr().out

    def test_wrong_passphrase(self, run, answers, capsys):
        answers += ["hunter2", "hunter2"]
        run("new")
        answers += ["wrong"]
        assert run("list") == 1
        assert "Wrong passphrase" in capsys.readouterr().err

    def test_show_out_of_range(self, run, answers):
        answers += ["", ""]
        run("new")
        assert run("show", "3") == 1

    def test_missing_file(self, run, capsys):
        assert run("list") == 1
        assert "not found" in capsys.readouterr().err


class TestCheck:
    def test_encrypted(self, run, answers, capsys):
        answers += ["pw", "pw"]
        run("new")
        assert run("check") == 0
        assert "encrypted" in capsys.readouterr().out

    def test_malformed(self, run, capsys):
        run.vault_file.write_text("{}")
        assert run("check") == 1
        assert "Missing field" in capsys.readouterr().err


class TestRestore:
    def test_restores_last_good_copy(self, run, answers, capsys):
        answers += ["", ""]
        run("new")
        answers += ["s3cr3t"]
        run("add", "--site", "example.com")
        run.vault_file.write_text("corrupted")

        assert run("restore") == 0
        assert "Restored" in capsys.readouterr().out
        assert run("list") == 0
        assert "No entries yet" in capsys.readouterr().out

    def test_no_backup(self, run, answers, capsys):
        answers += ["", ""]
        run("new")
        assert run("restore") == 1
        assert "no valid backup" in capsys.readouterr().err


class TestConfig:
    def test_created_then_updated(self, run, tmp_path, capsys):
        data_dir = tmp_path / "data"
        assert run("config", "--security-level", "128-bit") == 0
        assert capsys.readouterr().out.startswith("Created")

        assert run("config", "--vault-filename", "mine.json") == 0
        assert capsys.readouterr().out.startswith("Updated")

        from jsonvault.config import Config

        defaults = Config.get_defaults(data_dir)
        assert defaults["security_level"] == "128-bit"
        assert defaults["vault_filename"] == "mine.json"

    def test_new_uses_configured_labels(self, run, answers):
        run("config", "--algorithm", "AES-GCM", "--security-level", "192-bit")
        answers += ["", ""]
        run("new")
        doc = json.loads(run.vault_file.read_text())
        assert json.loads(doc["data"])["metadata"]["securityLevel"] == "192-bit"

    def test_rejects_path_as_filename(self, run, capsys):
        assert run("config", "--vault-filename", "../escape.json") == 1
        assert "bare file name" in capsys.readouterr().err
