"""Key derivation for the v10 safe-storage scheme."""
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from safestorage.core.config import OS_CRYPT_KDF


def derive_key(password) -> bytes:
    """
    Derive the 16-byte AES key from the secure-storage password using
    PBKDF2-HMAC-SHA1 with the fixed ``OS_CRYPT_KDF`` parameters.

    An empty password is accepted and derives a key like any other.
    """
    if isinstance(password, str):
        password = password.encode("utf-8")

    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA1(),
        length=OS_CRYPT_KDF.key_length,
        salt=OS_CRYPT_KDF.salt,
        iterations=OS_CRYPT_KDF.iterations,
    )
    return kdf.derive(password)
