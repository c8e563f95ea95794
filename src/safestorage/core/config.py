"""Configuration for the safestorage tool.

Two kinds of configuration live here:

- the key-derivation constants of the "v10" safe-storage scheme. These are
  fixed by the application whose secrets we read and are not user tunable;
  they are grouped in a single ``KdfParameters`` record so tests can pin them.
- per-application settings (keychain service/account names and the location
  of the application's ``config.json``), with environment variable overrides.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional
import json
import os

from .exceptions import ConfigFieldMissingError, ConfigReadError


ENCRYPTED_KEY_FIELD = "encryptedKey"
DEFAULT_APP_NAME = "Signal"


@dataclass(frozen=True)
class KdfParameters:
    """PBKDF2 parameters of the safe-storage scheme."""

    salt: bytes
    iterations: int
    key_length: int

    def to_dict(self) -> Dict:
        return {
            "algo": "pbkdf2-hmac-sha1",
            "salt": self.salt.hex(),
            "iterations": self.iterations,
            "key_length": self.key_length,
        }


OS_CRYPT_KDF = KdfParameters(salt=b"saltysalt", iterations=1003, key_length=16)


def default_config_path(app_name: str = DEFAULT_APP_NAME, home: Optional[str | Path] = None) -> Path:
    """Return the macOS location of ``config.json`` for ``app_name``."""
    base = Path(home) if home is not None else Path.home()
    return base / "Library" / "Application Support" / app_name / "config.json"


@dataclass
class AppSettings:
    """Names used to locate an application's safe-storage secret."""

    app_name: str = DEFAULT_APP_NAME
    service: Optional[str] = None
    primary_account: Optional[str] = None
    fallback_account: Optional[str] = None
    config_path: Optional[Path] = None

    def __post_init__(self) -> None:
        # Electron apps register "<App> Safe Storage" / "<App> Key"; older
        # builds used the bare app name as the account.
        if self.service is None:
            self.service = f"{self.app_name} Safe Storage"
        if self.primary_account is None:
            self.primary_account = f"{self.app_name} Key"
        if self.fallback_account is None:
            self.fallback_account = self.app_name
        if self.config_path is None:
            self.config_path = default_config_path(self.app_name)
        else:
            self.config_path = Path(self.config_path).expanduser()

    @classmethod
    def from_env(cls, environ: Optional[Dict[str, str]] = None) -> "AppSettings":
        """
        Build settings, letting ``SAFESTORAGE_*`` environment variables
        override the defaults:

        - ``SAFESTORAGE_APP_NAME``
        - ``SAFESTORAGE_SERVICE``
        - ``SAFESTORAGE_PRIMARY_ACCOUNT``
        - ``SAFESTORAGE_FALLBACK_ACCOUNT``
        - ``SAFESTORAGE_CONFIG``
        """
        env = os.environ if environ is None else environ
        return cls(
            app_name=env.get("SAFESTORAGE_APP_NAME") or DEFAULT_APP_NAME,
            service=env.get("SAFESTORAGE_SERVICE") or None,
            primary_account=env.get("SAFESTORAGE_PRIMARY_ACCOUNT") or None,
            fallback_account=env.get("SAFESTORAGE_FALLBACK_ACCOUNT") or None,
            config_path=env.get("SAFESTORAGE_CONFIG") or None,
        )


def load_encrypted_key(path: str | Path) -> str:
    """
    Read ``path`` as UTF-8 JSON and return its top-level ``encryptedKey``.

    Raises ``ConfigReadError`` when the file cannot be read or parsed and
    ``ConfigFieldMissingError`` when the field is absent or not a string.
    """
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except OSError as e:
        raise ConfigReadError(f"cannot read config file {path}: {e}") from e
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ConfigReadError(f"config file {path} is not valid JSON: {e}") from e

    value = data.get(ENCRYPTED_KEY_FIELD) if isinstance(data, dict) else None
    if not isinstance(value, str):
        raise ConfigFieldMissingError(f"missing {ENCRYPTED_KEY_FIELD} in {path}")
    return value
