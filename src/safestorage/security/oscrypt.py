"""Versioned AES-128-CBC envelope used by Chromium/Electron safe storage on macOS.

Envelope layout (hex encoded on the wire):
- 3 bytes: version tag b'v10'
- 16 bytes: IV, only with the RANDOM framing
- N bytes: AES-128-CBC ciphertext, PKCS#7 padded, N a multiple of 16

The FIXED framing is the upstream one: the IV is sixteen ASCII spaces and is
never stored. It is the default and the only framing that can read secrets
written by the upstream application. The RANDOM framing stores a fresh IV
after the tag; it only round-trips with this tool. The two are never
auto-detected, callers choose one explicitly.
"""
from __future__ import annotations

import binascii
import enum
import os
from typing import Tuple

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from safestorage.core.config import OS_CRYPT_KDF
from safestorage.core.exceptions import (
    CipherFailureError,
    InvalidUtf8Error,
    MalformedBlobError,
    UnsupportedVersionError,
)
from .kdf import derive_key


VERSION_TAG = b"v10"
BLOCK_SIZE = 16
KEY_LENGTH = OS_CRYPT_KDF.key_length
# sixteen ASCII spaces, as hardcoded by Chromium's macOS os_crypt
FIXED_IV = b" " * BLOCK_SIZE


class IVPolicy(enum.Enum):
    FIXED = "fixed"
    RANDOM = "random"


def _check_key(key: bytes) -> None:
    if len(key) != KEY_LENGTH:
        raise ValueError(f"AES-128 key must be {KEY_LENGTH} bytes, got {len(key)}")


def encrypt(plaintext: str | bytes, key: bytes, iv_policy: IVPolicy = IVPolicy.FIXED) -> str:
    """Encrypt ``plaintext`` and return the hex-encoded v10 envelope."""
    _check_key(key)
    if isinstance(plaintext, str):
        plaintext = plaintext.encode("utf-8")

    iv = FIXED_IV if iv_policy is IVPolicy.FIXED else os.urandom(BLOCK_SIZE)

    padder = padding.PKCS7(BLOCK_SIZE * 8).padder()
    padded = padder.update(plaintext) + padder.finalize()
    encryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).encryptor()
    ct = encryptor.update(padded) + encryptor.finalize()

    envelope = bytearray(VERSION_TAG)
    if iv_policy is IVPolicy.RANDOM:
        envelope += iv
    envelope += ct
    return bytes(envelope).hex()


def split_envelope(data: bytes, framing: IVPolicy = IVPolicy.FIXED) -> Tuple[bytes, bytes]:
    """Check the version tag and return ``(iv, ciphertext)`` for ``framing``."""
    if data[: len(VERSION_TAG)] != VERSION_TAG:
        raise UnsupportedVersionError(
            f"unsupported encryption version prefix {data[:len(VERSION_TAG)]!r}"
        )
    body = data[len(VERSION_TAG):]
    if framing is IVPolicy.FIXED:
        return FIXED_IV, body
    if len(body) < BLOCK_SIZE:
        raise MalformedBlobError("envelope too short to contain an IV")
    return body[:BLOCK_SIZE], body[BLOCK_SIZE:]


def decrypt_bytes(blob: str, key: bytes, framing: IVPolicy = IVPolicy.FIXED) -> bytes:
    """Decode the hex envelope ``blob`` and return the raw plaintext bytes."""
    _check_key(key)
    try:
        data = binascii.unhexlify(blob)
    except ValueError as e:
        # binascii.Error covers odd length and non-hex digits; non-ASCII
        # text raises a plain ValueError.
        raise MalformedBlobError(f"encrypted key is not valid hex: {e}") from e

    iv, ct = split_envelope(data, framing)
    if not ct or len(ct) % BLOCK_SIZE:
        raise CipherFailureError(
            f"ciphertext length {len(ct)} is not a positive multiple of {BLOCK_SIZE}"
        )

    decryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).decryptor()
    padded = decryptor.update(ct) + decryptor.finalize()
    unpadder = padding.PKCS7(BLOCK_SIZE * 8).unpadder()
    try:
        return unpadder.update(padded) + unpadder.finalize()
    except ValueError as e:
        raise CipherFailureError("decryption failed (wrong password or corrupted data)") from e


def decrypt(blob: str, key: bytes, framing: IVPolicy = IVPolicy.FIXED) -> str:
    """Decrypt the hex envelope ``blob`` and return it as text."""
    raw = decrypt_bytes(blob, key, framing)
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as e:
        raise InvalidUtf8Error("decrypted data is not valid UTF-8") from e


class OSCrypt:
    """A derived key bound to one envelope framing."""

    def __init__(self, key: bytes, framing: IVPolicy = IVPolicy.FIXED):
        _check_key(key)
        self._key = key
        self.framing = framing

    @classmethod
    def from_password(cls, password: str, framing: IVPolicy = IVPolicy.FIXED) -> "OSCrypt":
        return cls(derive_key(password), framing)

    def encrypt_string(self, plaintext: str) -> str:
        return encrypt(plaintext, self._key, self.framing)

    def decrypt_string(self, blob: str) -> str:
        return decrypt(blob, self._key, self.framing)
