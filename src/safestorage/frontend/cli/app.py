"""Command line entry point: recover an app's safe-storage protected key.

Typical use on macOS::

    safestorage                      # read ~/Library/Application Support/Signal/config.json
    safestorage -c ./config.json     # explicit config file
    safestorage -k 763130...         # envelope given directly
    safestorage -e "new key"         # produce a new v10 envelope
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

import pyperclip

from safestorage.core.config import AppSettings
from safestorage.core.exceptions import SafeStorageError
from safestorage.security.keystore import KeyringSecretStore, SecretStore, assess_keyring_backend
from safestorage.security.oscrypt import IVPolicy
from safestorage.security.resolver import ConfigFileBlob, LiteralBlob, SecretResolver
from .logging_config import configure_logging


TOOL_NAME = "SignalDecryption"
__version__ = "1.0.0"

logger = logging.getLogger(__name__)


def _build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="safestorage",
        description="Decrypt a key protected by Electron/Chromium safe storage (macOS, v10).",
    )
    parser.add_argument(
        "-c",
        "--config",
        metavar="PATH",
        default=None,
        help="Path to the application's config.json",
    )
    source = parser.add_mutually_exclusive_group()
    source.add_argument(
        "-k",
        "--key",
        metavar="KEY",
        default=None,
        help="Hex encrypted key to decrypt instead of reading the config file",
    )
    source.add_argument(
        "-e",
        "--encrypt",
        metavar="TEXT",
        default=None,
        help="Encrypt TEXT with the secure storage password and print the envelope",
    )
    parser.add_argument(
        "-p",
        "--print-key",
        action="store_true",
        help="Print the secure storage password (use with caution)",
    )
    parser.add_argument(
        "--random-iv",
        action="store_true",
        help="Use the random-IV framing (only readable by this tool)",
    )
    parser.add_argument(
        "--copy",
        action="store_true",
        help="Copy the result to the clipboard",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show debug logging",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"{TOOL_NAME} version {__version__} (macOS)",
    )
    return parser


def main(argv: Optional[List[str]] = None, store: Optional[SecretStore] = None) -> int:
    parser = _build_arg_parser()
    args = parser.parse_args(argv)

    configure_logging(args.verbose)

    settings = AppSettings.from_env()
    if args.config:
        settings.config_path = Path(args.config).expanduser()

    if store is None:
        secure, msg = assess_keyring_backend()
        if not secure:
            logger.warning("%s", msg)
        store = KeyringSecretStore()

    resolver = SecretResolver(
        store,
        settings.service,
        settings.primary_account,
        settings.fallback_account,
        framing=IVPolicy.RANDOM if args.random_iv else IVPolicy.FIXED,
    )

    try:
        password = resolver.get_secure_password()
        if args.print_key:
            print(f"Secure password retrieved: {password}")

        if args.encrypt is not None:
            result = resolver.encrypt_value(args.encrypt, password)
            print(f"Encrypted key: {result}")
        else:
            if args.key is not None:
                source = LiteralBlob(args.key)
            else:
                source = ConfigFileBlob(settings.config_path)
            blob = resolver.load_blob(source)
            print(f"Encrypted key: {blob}")
            result = resolver.decrypt_blob(blob, password)
            print(f"Decrypted key: {result}")

        if args.copy:
            pyperclip.copy(result)
            logger.info("Copied result to clipboard")
    except SafeStorageError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except pyperclip.PyperclipException as e:
        print(f"Error: clipboard unavailable: {e}", file=sys.stderr)
        return 1

    return 0


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":  # pragma: no cover - CLI entry
    run()
