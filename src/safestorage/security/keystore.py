"""OS keystore integration using keyring to read safe-storage passwords.

Electron/Chromium apps keep the password behind their "v10" envelopes in the
platform secret store (macOS Keychain on the supported platform). This module
hides the backend behind a small ``SecretStore`` capability so the resolver
can be exercised with an in-memory stub.
"""
from typing import Protocol

from safestorage.core.exceptions import (
    SecretAccessDeniedError,
    SecretNotFoundError,
    SecretPlatformError,
)

try:
    import keyring
    from keyring.errors import KeyringError, KeyringLocked
except Exception:
    keyring = None


def _require_keyring():
    if keyring is None:
        raise SecretPlatformError("keyring package is not available; install keyring to read secure storage")


class SecretStore(Protocol):
    def get_secret(self, service: str, account: str) -> str:
        """Return the secret for (service, account) or raise a SecretLookupError."""
        ...


class KeyringSecretStore:
    """SecretStore backed by whatever keyring backend is active."""

    def get_secret(self, service: str, account: str) -> str:
        _require_keyring()
        try:
            secret = keyring.get_password(service, account)
        except KeyringLocked as e:
            raise SecretAccessDeniedError(f"secure storage is locked for {service!r}/{account!r}: {e}") from e
        except KeyringError as e:
            raise SecretPlatformError(f"secure storage lookup failed for {service!r}/{account!r}: {e}") from e
        except Exception as e:
            # third-party backends do not always wrap their errors in KeyringError
            raise SecretPlatformError(f"secure storage backend error for {service!r}/{account!r}: {e}") from e
        if secret is None:
            raise SecretNotFoundError(f"no secure storage entry for {service!r}/{account!r}")
        return secret

    def set_secret(self, service: str, account: str, secret: str) -> None:
        """Store ``secret`` under (service, account); used to provision test machines."""
        _require_keyring()
        try:
            keyring.set_password(service, account, secret)
        except KeyringError as e:
            raise SecretPlatformError(f"cannot write secure storage entry {service!r}/{account!r}: {e}") from e


def assess_keyring_backend() -> tuple[bool, str]:
    """Return (is_secure, message) describing the current keyring backend.

    Heuristics are used because the `keyring` package exposes different backends
    across platforms. If `keyring` is not available this returns (False, reason).
    """
    if keyring is None:
        return False, "keyring package is not installed"

    try:
        backend = keyring.get_keyring()
    except Exception as e:
        return False, f"failed to get keyring backend: {e}"

    name = backend.__class__.__name__
    priority = getattr(backend, "priority", None)

    insecure_indicators = ("Plaintext", "Uncrypted", "Simple", "File")
    if any(tok in name for tok in insecure_indicators):
        return False, f"insecure backend detected: {name}"

    if priority is not None and priority <= 0:
        return False, f"no suitable secure keyring backend available (priority={priority}, backend={name})"

    if "Keychain" in name:
        return True, f"backend looks acceptable: {name} (priority={priority})"
    if "Win" in name or "SecretService" in name or "KWallet" in name:
        return True, f"backend looks acceptable: {name} (priority={priority}); v10 secrets are read from Keychain on macOS"

    return True, f"unknown backend '{name}', treat with caution (priority={priority})"
