"""jsonvault command-line host."""

from __future__ import annotations

import argparse
import logging
import sys
from getpass import getpass
from pathlib import Path
from typing import List, Optional

from jsonvault.errors import VaultError

logger = logging.getLogger("jsonvault")

PLAINTEXT_WARNING = (
    "WARNING: empty passphrase - the vault is stored UNENCRYPTED and anyone "
    "with the file can read it."
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="jsonvault", description="Passphrase-protected credential store."
    )
    parser.add_argument("--file", type=Path, help="vault file (default: data dir)")
    parser.add_argument("--data-dir", type=Path, help="directory for config and logs")
    sub = parser.add_subparsers(dest="command", required=True)

    p_new = sub.add_parser("new", help="create an empty vault")
    p_new.add_argument("--algorithm", help="algorithm label stored in metadata")
    p_new.add_argument("--security-level", help="security label stored in metadata")
    p_new.add_argument("--force", action="store_true", help="overwrite an existing file")

    p_add = sub.add_parser("add", help="append an entry")
    p_add.add_argument("--site", required=True)
    p_add.add_argument("--username", default="")
    p_add.add_argument("--note", default="")

    sub.add_parser("list", help="list entries with secrets masked")

    p_show = sub.add_parser("show", help="print one entry in full")
    p_show.add_argument("index", type=int, help="1-based entry number")

    sub.add_parser("check", help="report whether the file is a valid vault")

    sub.add_parser("restore", help="replace the vault with its last good backup")

    p_config = sub.add_parser("config", help="write defaults to config.ini")
    p_config.add_argument("--algorithm", help="default algorithm label")
    p_config.add_argument("--security-level", help="default security label")
    p_config.add_argument("--vault-filename", help="vault file name in the data dir")
    return parser


# ============================================================================
#  Commands
# ============================================================================
def _ask_new_passphrase() -> str:
    first = getpass("New passphrase (empty = no encryption): ")
    if getpass("Repeat passphrase: ") != first:
        raise VaultError("Passphrases do not match")
    if not first:
        print(PLAINTEXT_WARNING, file=sys.stderr)
    return first


def _open_session(storage):
    from jsonvault.crypto.formats import MODE_ENCRYPTED, probe
    from jsonvault.vault.session import VaultSession

    data = storage.read()
    passphrase = ""
    if probe(data) == MODE_ENCRYPTED:
        passphrase = getpass("Passphrase: ")
    session = VaultSession()
    session.load(data, passphrase)
    return session


def cmd_new(args, storage, data_dir: Path) -> int:
    from jsonvault.config import Config
    from jsonvault.vault.models import VaultMetadata
    from jsonvault.vault.session import VaultSession

    if storage.exists() and not args.force:
        print(f"ERROR: {storage.vault_path} already exists (use --force)", file=sys.stderr)
        return 1

    defaults = Config.default_metadata(data_dir)
    metadata = VaultMetadata(
        args.algorithm or defaults.algorithm_label,
        args.security_level or defaults.security_level,
    )
    passphrase = _ask_new_passphrase()
    session = VaultSession()
    try:
        session.create_new(metadata, passphrase)
        storage.write_atomic(session.save())
    finally:
        session.close()
    print(f"Created {storage.vault_path}")
    return 0


def cmd_add(args, storage, data_dir: Path) -> int:
    from jsonvault.vault.models import Entry

    session = _open_session(storage)
    try:
        secret = getpass("Secret: ")
        session.add_entry(Entry(args.site, args.username, secret, args.note))
        storage.write_atomic(session.save())
        count = len(session.entries)
    finally:
        session.close()
    print(f"Added entry #{count} ({args.site})")
    return 0


def cmd_list(args, storage, data_dir: Path) -> int:
    session = _open_session(storage)
    try:
        meta = session.metadata
        entries = session.entries
    finally:
        session.close()
    print(f"{meta.algorithm_label} / {meta.security_level}")
    if not entries:
        print("No entries yet")
        return 0
    for i, entry in enumerate(entries, start=1):
        print(f"{i:>3}  {entry.site}  {entry.username or '(no username)'}  ********")
    return 0


def cmd_show(args, storage, data_dir: Path) -> int:
    session = _open_session(storage)
    try:
        entries = session.entries
    finally:
        session.close()
    if not 1 <= args.index <= len(entries):
        print(f"ERROR: no entry #{args.index}", file=sys.stderr)
        return 1
    entry = entries[args.index - 1]
    print(f"Site:     {entry.site}")
    print(f"Username: {entry.username}")
    print(f"Secret:   {entry.secret}")
    print(f"Note:     {entry.note}")
    return 0


def cmd_check(args, storage, data_dir: Path) -> int:
    from jsonvault.crypto.formats import MODE_PLAINTEXT, probe

    mode = probe(storage.read())
    print(f"Valid vault ({mode})")
    if mode == MODE_PLAINTEXT:
        print(PLAINTEXT_WARNING)
    return 0



def cmd_restore(args, storage, data_dir: Path) -> int:
    if not storage.restore_backup():
        print(f"ERROR: no valid backup at {storage.backup_path}", file=sys.stderr)
        return 1
    print(f"Restored {storage.vault_path} from {storage.backup_path.name}")
    return 0


def cmd_config(args, data_dir: Path) -> int:
    from jsonvault.config import Config, write_config

    existed = Config.config_exists(data_dir)
    values = Config.get_defaults(data_dir)
    if args.algorithm:
        values["algorithm"] = args.algorithm
    if args.security_level:
        values["security_level"] = args.security_level
    if args.vault_filename:
        if Path(args.vault_filename).name != args.vault_filename:
            print("ERROR: --vault-filename must be a bare file name", file=sys.stderr)
            return 1
        values["vault_filename"] = args.vault_filename
    path = write_config(data_dir, values)
    print(f"{'Updated' if existed else 'Created'} {path}")
    return 0


COMMANDS = {
    "new": cmd_new,
    "add": cmd_add,
    "list": cmd_list,
    "show": cmd_show,
    "check": cmd_check,
    "restore": cmd_restore,
}


# ============================================================================
#  Entry point
# ============================================================================
def main(argv: Optional[List[str]] = None) -> int:
    """Application entry point."""
    from jsonvault import check_dependencies

    check_dependencies()
    args = build_parser().parse_args(argv)

    from jsonvault.logging_setup import setup_secure_logging
    from jsonvault.paths import get_data_dir, get_vault_path
    from jsonvault.storage.backend import StorageBackend
    from jsonvault.util.platform_harden import (
        apply_platform_hardening,
        validate_system_requirements,
    )

    data_dir = args.data_dir or get_data_dir()
    data_dir.mkdir(parents=True, exist_ok=True)
    setup_secure_logging(data_dir)

    try:
        validate_system_requirements()
    except SystemError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1
    apply_platform_hardening()

    vault_path = args.file or get_vault_path(data_dir)
    try:
        if args.command == "config":
            return cmd_config(args, data_dir)
        with StorageBackend(vault_path) as storage:
            return COMMANDS[args.command](args, storage, data_dir)
    except (VaultError, FileNotFoundError, RuntimeError) as exc:
        logger.error("%s failed: %s", args.command, type(exc).__name__)
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130


if __name__ == "__main__":
    sys.exit(main())
