from unittest.mock import patch
from keyring.errors import KeyringError, PasswordDeleteError
from kanbanbar.auth.secret_store import ACCESS_TOKEN_KEY, KeyringSecretStore

SERVICE = "com.kanbanbar.test"


def test_save_and_load_access_token():
    with patch("kanbanbar.auth.secret_store.keyring") as keyring:
        keyring.get_password.return_value = "gho_abc"
        store = KeyringSecretStore(SERVICE)

        assert store.save_access_token("gho_abc")
        assert store.load_access_token() == "gho_abc"

    keyring.set_password.assert_called_once_with(SERVICE, ACCESS_TOKEN_KEY, "gho_abc")
    keyring.get_password.assert_called_with(SERVICE, ACCESS_TOKEN_KEY)


def test_save_failure_returns_false():
    with patch("kanbanbar.auth.secret_store.keyring") as keyring:
        keyring.set_password.side_effect = KeyringError("locked")
        assert KeyringSecretStore(SERVICE).save("key", "value") is False


def test_delete_missing_key_is_success():
    with patch("kanbanbar.auth.secret_store.keyring") as keyring:
        keyring.get_password.return_value = None
        assert KeyringSecretStore(SERVICE).delete_access_token()
    keyring.delete_password.assert_not_called()


def test_delete_failure_returns_false():
    with patch("kanbanbar.auth.secret_store.keyring") as keyring:
        keyring.get_password.return_value = "gho_abc"
        keyring.delete_password.side_effect = PasswordDeleteError("denied")
        assert KeyringSecretStore(SERVICE).delete_access_token() is False


def test_load_error_returns_none():
    with patch("kanbanbar.auth.secret_store.keyring") as keyring:
        keyring.get_password.side_effect = KeyringError("no backend")
        assert KeyringSecretStore(SERVICE).load("key") is None
