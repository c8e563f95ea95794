"""Security helpers: key derivation, the v10 envelope codec and secret lookup.

This package provides:
- PBKDF2-HMAC-SHA1 key derivation with the fixed safe-storage parameters
- the "v10" AES-128-CBC envelope (fixed-IV upstream framing, random-IV opt-in)
- keyring-backed secure-storage access and the resolver that ties them together
"""

from .kdf import derive_key
from .oscrypt import (
    IVPolicy,
    OSCrypt,
    encrypt,
    decrypt,
    decrypt_bytes,
)
from .keystore import KeyringSecretStore, SecretStore, assess_keyring_backend
from .resolver import ConfigFileBlob, LiteralBlob, SecretResolver, resolve

__all__ = [
    "derive_key",
    "IVPolicy",
    "OSCrypt",
    "encrypt",
    "decrypt",
    "decrypt_bytes",
    "KeyringSecretStore",
    "SecretStore",
    "assess_keyring_backend",
    "ConfigFileBlob",
    "LiteralBlob",
    "SecretResolver",
    "resolve",
]
