import pytest
from unittest.mock import AsyncMock, MagicMock, patch
from urllib.parse import parse_qs, urlparse
from kanbanbar.auth.service import AuthenticationService
from kanbanbar.config import Settings
from kanbanbar.github.errors import InvalidResponseError, UserCancelledError
from kanbanbar.github.models import GitHubUser
from conftest import FakeSecretStore


def token_response(status_code=200, text=""):
    response = MagicMock()
    response.status_code = status_code
    response.text = text
    return response


@pytest.fixture
def github():
    github = MagicMock()
    github.fetch_current_user = AsyncMock(return_value=GitHubUser(id=1, login="octocat"))
    return github


@pytest.fixture
def auth_settings():
    return Settings(GITHUB_CLIENT_ID="client-123", GITHUB_CLIENT_SECRET="secret")


def test_authorization_url(github, auth_settings):
    auth = AuthenticationService(FakeSecretStore(), github, auth_settings)
    url = urlparse(auth.authorization_url())

    assert url.netloc == "github.com"
    assert url.path == "/login/oauth/authorize"
    assert parse_qs(url.query) == {
        "client_id": ["client-123"],
        "scope": ["repo,read:user,project"],
        "redirect_uri": ["kanbanbar://oauth/callback"],
    }


def test_parse_callback():
    assert AuthenticationService.parse_callback("kanbanbar://oauth/callback?code=abc") == "abc"

    with pytest.raises(UserCancelledError):
        AuthenticationService.parse_callback("kanbanbar://oauth/callback?error=access_denied")
    with pytest.raises(InvalidResponseError):
        AuthenticationService.parse_callback("kanbanbar://oauth/callback")


@pytest.mark.asyncio
async def test_exchange_accepts_url_encoded_body(github, auth_settings):
    auth = AuthenticationService(FakeSecretStore(), github, auth_settings)
    with patch("kanbanbar.auth.service.requests.post") as post:
        post.return_value = token_response(text="access_token=gho_abc&scope=repo&token_type=bearer")
        token = await auth.exchange_code_for_token("code-1")

    assert token == "gho_abc"
    _, kwargs = post.call_args
    assert kwargs["data"] == {
        "client_id": "client-123",
        "client_secret": "secret",
        "code": "code-1",
        "redirect_uri": "kanbanbar://oauth/callback",
    }
    assert kwargs["headers"]["Accept"] == "application/json"


@pytest.mark.asyncio
async def test_exchange_accepts_json_body(github, auth_settings):
    auth = AuthenticationService(FakeSecretStore(), github, auth_settings)
    with patch("kanbanbar.auth.service.requests.post") as post:
        post.return_value = token_response(text='{"access_token": "gho_json", "token_type": "bearer"}')
        assert await auth.exchange_code_for_token("code-1") == "gho_json"


@pytest.mark.asyncio
async def test_exchange_rejects_error_status(github, auth_settings):
    auth = AuthenticationService(FakeSecretStore(), github, auth_settings)
    with patch("kanbanbar.auth.service.requests.post") as post:
        post.return_value = token_response(status_code=400, text="")
        with pytest.raises(InvalidResponseError):
            await auth.exchange_code_for_token("code-1")


@pytest.mark.asyncio
async def test_complete_authorization_saves_and_validates(github, auth_settings):
    secrets = FakeSecretStore()
    auth = AuthenticationService(secrets, github, auth_settings)
    with patch("kanbanbar.auth.service.requests.post") as post:
        post.return_value = token_response(text="access_token=gho_abc")
        ok = await auth.complete_authorization("kanbanbar://oauth/callback?code=abc")

    assert ok
    assert auth.is_authenticated
    assert auth.current_user.login == "octocat"
    assert secrets.load_access_token() == "gho_abc"


@pytest.mark.asyncio
async def test_cancelled_authorization_stays_signed_out(github, auth_settings):
    auth = AuthenticationService(FakeSecretStore(), github, auth_settings)

    ok = await auth.complete_authorization("kanbanbar://oauth/callback?error=access_denied")

    assert ok is False
    assert auth.is_authenticated is False
    github.fetch_current_user.assert_not_called()


@pytest.mark.asyncio
async def test_failed_token_save_is_terminal(github, auth_settings):
    auth = AuthenticationService(FakeSecretStore(fail_save=True), github, auth_settings)
    with patch("kanbanbar.auth.service.requests.post") as post:
        post.return_value = token_response(text="access_token=gho_abc")
        ok = await auth.complete_authorization("kanbanbar://oauth/callback?code=abc")

    assert ok is False
    assert auth.is_authenticated is False
    github.fetch_current_user.assert_not_called()


@pytest.mark.asyncio
async def test_invalid_stored_token_is_deleted(github, auth_settings):
    secrets = FakeSecretStore(token="gho_expired")
    github.fetch_current_user.side_effect = InvalidResponseError("401", status_code=401)
    auth = AuthenticationService(secrets, github, auth_settings)

    assert await auth.restore_session() is False
    assert secrets.load_access_token() is None
    assert auth.current_user is None


@pytest.mark.asyncio
async def test_restore_session_and_sign_out(github, auth_settings):
    secrets = FakeSecretStore(token="gho_valid")
    auth = AuthenticationService(secrets, github, auth_settings)

    assert await auth.restore_session()
    assert auth.access_token() == "gho_valid"

    auth.sign_out()
    assert auth.is_authenticated is False
    assert auth.access_token() is None


@pytest.mark.asyncio
async def test_restore_session_without_token(github, auth_settings):
    auth = AuthenticationService(FakeSecretStore(), github, auth_settings)
    assert await auth.restore_session() is False
    github.fetch_current_user.assert_not_called()
