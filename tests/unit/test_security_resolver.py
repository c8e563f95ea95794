"""Unit tests for SecretResolver: account fallback, blob sources and decryption."""

import json
import pytest
from unittest.mock import patch

from safestorage.core.exceptions import (
    CipherFailureError,
    ConfigFieldMissingError,
    ConfigReadError,
    SecretAccessDeniedError,
    SecretNotFoundError,
    SecretPlatformError,
    SecretUnavailableError,
    UnsupportedVersionError,
)
from safestorage.security.oscrypt import IVPolicy
from safestorage.security.resolver import (
    ConfigFileBlob,
    LiteralBlob,
    SecretResolver,
    resolve,
)


HELLO_BLOB = "763130c49ae67852c5e0a252ecf407528a460d"  # "hello world" under password "test"


class StubSecretStore:
    """In-memory SecretStore that records every lookup."""

    def __init__(self, secrets, errors=None):
        self.secrets = secrets
        self.errors = errors or {}
        self.calls = []

    def get_secret(self, service, account):
        self.calls.append((service, account))
        if account in self.errors:
            raise self.errors[account]
        if (service, account) not in self.secrets:
            raise SecretNotFoundError(f"{service}/{account}")
        return self.secrets[(service, account)]


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"encryptedKey": HELLO_BLOB}), encoding="utf-8")
    return path


def _resolver(store, framing=IVPolicy.FIXED):
    return SecretResolver(store, "App Safe Storage", "Primary", "Fallback", framing=framing)


# ==============================================================================
# Tests: Secure password lookup
# ==============================================================================

def test_primary_account_wins():
    store = StubSecretStore({("App Safe Storage", "Primary"): "p1", ("App Safe Storage", "Fallback"): "p2"})

    assert _resolver(store).get_secure_password() == "p1"
    assert store.calls == [("App Safe Storage", "Primary")]


def test_fallback_used_when_primary_missing():
    store = StubSecretStore({("App Safe Storage", "Fallback"): "test"})

    assert _resolver(store).get_secure_password() == "test"
    assert store.calls == [
        ("App Safe Storage", "Primary"),
        ("App Safe Storage", "Fallback"),
    ]


@pytest.mark.parametrize(
    "error",
    [SecretAccessDeniedError("denied"), SecretPlatformError("broken")],
)
def test_fallback_used_on_any_lookup_failure(error):
    store = StubSecretStore({("App Safe Storage", "Fallback"): "test"}, errors={"Primary": error})

    assert _resolver(store).get_secure_password() == "test"
    assert len(store.calls) == 2


def test_both_lookups_failing_is_secret_unavailable():
    store = StubSecretStore({})

    with pytest.raises(SecretUnavailableError) as info:
        _resolver(store).get_secure_password()

    assert len(store.calls) == 2
    assert "Primary" in str(info.value) and "Fallback" in str(info.value)
    assert isinstance(info.value.__cause__, SecretNotFoundError)


def test_unexpected_store_errors_propagate():
    """Only lookup failures trigger the fallback; bugs are not masked."""
    store = StubSecretStore({}, errors={"Primary": TypeError("bug")})

    with pytest.raises(TypeError):
        _resolver(store).get_secure_password()
    assert len(store.calls) == 1


# ==============================================================================
# Tests: Blob sources
# ==============================================================================

def test_load_blob_literal():
    store = StubSecretStore({})
    assert _resolver(store).load_blob(LiteralBlob("deadbeef")) == "deadbeef"


def test_load_blob_config_file(tmp_path):
    path = tmp_path / "config.json"
    path.write_text('{"encryptedKey": "deadbeef"}', encoding="utf-8")

    assert _resolver(StubSecretStore({})).load_blob(ConfigFileBlob(path)) == "deadbeef"


def test_load_blob_config_field_missing(tmp_path):
    path = tmp_path / "config.json"
    path.write_text('{"other": 1}', encoding="utf-8")

    with pytest.raises(ConfigFieldMissingError):
        _resolver(StubSecretStore({})).load_blob(ConfigFileBlob(path))


def test_load_blob_config_missing_file(tmp_path):
    with pytest.raises(ConfigReadError):
        _resolver(StubSecretStore({})).load_blob(ConfigFileBlob(tmp_path / "nope.json"))


# ==============================================================================
# Tests: resolve
# ==============================================================================

def test_resolve_with_fallback_account(config_file):
    store = StubSecretStore({("App Safe Storage", "Fallback"): "test"})

    plaintext = resolve("App Safe Storage", "Primary", "Fallback", ConfigFileBlob(config_file), store=store)

    assert plaintext == "hello world"
    assert len(store.calls) == 2


def test_resolve_literal_blob():
    store = StubSecretStore({("App Safe Storage", "Primary"): "test"})

    assert _resolver(store).resolve(LiteralBlob(HELLO_BLOB)) == "hello world"


def test_resolve_with_supplied_password_skips_lookup():
    store = StubSecretStore({})

    assert _resolver(store).resolve(LiteralBlob(HELLO_BLOB), password="test") == "hello world"
    assert store.calls == []


def test_resolve_wrong_password_is_cipher_failure():
    store = StubSecretStore({("App Safe Storage", "Primary"): "wrong"})

    with pytest.raises(CipherFailureError):
        _resolver(store).resolve(LiteralBlob(HELLO_BLOB))


def test_resolve_propagates_version_error():
    store = StubSecretStore({("App Safe Storage", "Primary"): "test"})

    with pytest.raises(UnsupportedVersionError):
        _resolver(store).resolve(LiteralBlob("763131" + HELLO_BLOB[6:]))


def test_resolve_no_secret_never_reads_config(tmp_path):
    with patch("safestorage.security.resolver.load_encrypted_key") as loader:
        with pytest.raises(SecretUnavailableError):
            _resolver(StubSecretStore({})).resolve(ConfigFileBlob(tmp_path / "config.json"))
    loader.assert_not_called()


def test_resolve_uses_keyring_store_by_default():
    with patch("safestorage.security.resolver.KeyringSecretStore") as store_cls:
        store_cls.return_value.get_secret.return_value = "test"
        assert resolve("svc", "a", "b", LiteralBlob(HELLO_BLOB)) == "hello world"
    store_cls.return_value.get_secret.assert_called_once_with("svc", "a")


# ==============================================================================
# Tests: encrypt_value
# ==============================================================================

def test_encrypt_value_fixed_matches_upstream_vector():
    store = StubSecretStore({("App Safe Storage", "Primary"): "test"})
    assert _resolver(store).encrypt_value("hello world") == HELLO_BLOB


def test_encrypt_value_random_round_trip():
    store = StubSecretStore({("App Safe Storage", "Primary"): "test"})
    resolver = _resolver(store, IVPolicy.RANDOM)

    blob = resolver.encrypt_value("fresh master key")

    assert blob != resolver.encrypt_value("fresh master key")
    assert resolver.resolve(LiteralBlob(blob)) == "fresh master key"
