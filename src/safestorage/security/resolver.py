"""Recover a safe-storage protected value (e.g. an app's database key).

The resolver wires the pieces together:

- the secure-storage password comes from a ``SecretStore``; the primary
  account is tried first and the fallback account exactly once after it
- the hex envelope comes either from the command line or from the
  ``encryptedKey`` field of the application's ``config.json``
- the password is stretched with :func:`derive_key` and the envelope is
  opened with :func:`safestorage.security.oscrypt.decrypt`

Every failure surfaces as a :class:`SafeStorageError` subclass; nothing is
retried beyond the account fallback.
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union
import logging

from safestorage.core.config import load_encrypted_key
from safestorage.core.exceptions import SecretLookupError, SecretUnavailableError
from .kdf import derive_key
from .keystore import KeyringSecretStore, SecretStore
from .oscrypt import IVPolicy, decrypt, encrypt


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LiteralBlob:
    """Envelope supplied verbatim, e.g. via ``--key``."""

    value: str


@dataclass(frozen=True)
class ConfigFileBlob:
    """Envelope read from the ``encryptedKey`` field of a JSON config file."""

    path: Path


BlobSource = Union[LiteralBlob, ConfigFileBlob]


class SecretResolver:
    def __init__(
        self,
        store: SecretStore,
        service: str,
        primary_account: str,
        fallback_account: str,
        framing: IVPolicy = IVPolicy.FIXED,
    ):
        self.store = store
        self.service = service
        self.primary_account = primary_account
        self.fallback_account = fallback_account
        self.framing = framing

    def get_secure_password(self) -> str:
        """Look up the password under the primary account, then the fallback."""
        try:
            secret = self.store.get_secret(self.service, self.primary_account)
        except SecretLookupError as first:
            logger.info(
                "No secret for account %r (%s); trying %r",
                self.primary_account,
                first,
                self.fallback_account,
            )
            try:
                secret = self.store.get_secret(self.service, self.fallback_account)
            except SecretLookupError as second:
                raise SecretUnavailableError(
                    f"no secure storage password for service {self.service!r} "
                    f"(account {self.primary_account!r}: {first}; "
                    f"account {self.fallback_account!r}: {second})"
                ) from second
            logger.info("Using secret from fallback account %r", self.fallback_account)
            return secret

        logger.info("Using secret from account %r", self.primary_account)
        return secret

    def load_blob(self, source: BlobSource) -> str:
        if isinstance(source, LiteralBlob):
            logger.info("Using directly provided encrypted key")
            return source.value
        logger.info("Using config path: %s", source.path)
        return load_encrypted_key(source.path)

    def decrypt_blob(self, blob: str, password: str) -> str:
        return decrypt(blob, derive_key(password), self.framing)

    def encrypt_value(self, plaintext: str, password: Optional[str] = None) -> str:
        """Wrap ``plaintext`` into a new envelope using this resolver's framing."""
        if password is None:
            password = self.get_secure_password()
        return encrypt(plaintext, derive_key(password), self.framing)

    def resolve(self, source: BlobSource, password: Optional[str] = None) -> str:
        """
        Return the plaintext protected by the envelope from ``source``.

        ``password`` skips the secure-storage lookup when the caller already
        fetched it (the CLI does, to honour ``--print-key``).
        """
        if password is None:
            password = self.get_secure_password()
        blob = self.load_blob(source)
        return self.decrypt_blob(blob, password)


def resolve(
    service: str,
    primary_account: str,
    fallback_account: str,
    blob_source: BlobSource,
    store: Optional[SecretStore] = None,
) -> str:
    resolver = SecretResolver(
        store or KeyringSecretStore(),
        service,
        primary_account,
        fallback_account,
    )
    return resolver.resolve(blob_source)
