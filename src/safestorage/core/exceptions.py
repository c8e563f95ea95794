"""
Exceptions for the safestorage package
Everything derives from SafeStorageError so the CLI has one error catcher
"""


class SafeStorageError(Exception):
    # general container for errors
    pass


class SecretLookupError(SafeStorageError):
    # raised by a secret store when a single lookup fails
    pass


class SecretNotFoundError(SecretLookupError):
    # no entry for the service/account pair
    pass


class SecretAccessDeniedError(SecretLookupError):
    # the store is locked or the user refused access
    pass


class SecretPlatformError(SecretLookupError):
    # backend missing or failing
    pass


class SecretUnavailableError(SafeStorageError):
    # raised when both the primary and fallback lookups failed
    pass


class ConfigError(SafeStorageError):
    pass


class ConfigReadError(ConfigError):
    # config file missing, unreadable or not valid JSON
    pass


class ConfigFieldMissingError(ConfigError):
    # JSON parsed but has no usable encryptedKey
    pass


class DecodeError(SafeStorageError):
    # general container for ciphertext envelope errors
    pass


class MalformedBlobError(DecodeError):
    # not hex, odd length, or truncated envelope
    pass


class UnsupportedVersionError(DecodeError):
    # envelope does not start with a known version tag
    pass


class CipherFailureError(DecodeError):
    # wrong key, corrupted ciphertext, or bad padding
    pass


class InvalidUtf8Error(DecodeError):
    # decrypted bytes are not text
    pass
