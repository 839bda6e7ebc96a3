import asyncio
import requests
from typing import Optional
from urllib.parse import parse_qs, urlencode, urlparse
from pydantic import BaseModel, ValidationError
from kanbanbar.auth.secret_store import KeyringSecretStore
from kanbanbar.config import Settings, settings as default_settings
from kanbanbar.github.client import GitHubClient
from kanbanbar.github.errors import (
    ApiError,
    AuthenticationFailedError,
    InvalidResponseError,
    NetworkError,
    UserCancelledError,
)
from kanbanbar.github.models import GitHubUser
from kanbanbar.utils.logger import get_logger

logger = get_logger(__name__)


class TokenResponse(BaseModel):
    """アクセストークン交換のJSONレスポンス"""

    access_token: str
    token_type: Optional[str] = None
    scope: Optional[str] = None


class AuthenticationService:
    """GitHub OAuthの認可コード交換とサインイン状態を管理

    ブラウザでの認可画面の表示は呼び出し側の責務。
    """

    def __init__(
        self,
        secret_store: KeyringSecretStore,
        client: GitHubClient,
        settings: Optional[Settings] = None,
    ):
        self.secret_store = secret_store
        self.client = client
        self.settings = settings or default_settings
        self.is_authenticated = False
        self.current_user: Optional[GitHubUser] = None
        self.is_loading = False

    def authorization_url(self) -> str:
        """ブラウザで開く認可URL"""
        query = urlencode({
            "client_id": self.settings.GITHUB_CLIENT_ID,
            "scope": self.settings.GITHUB_OAUTH_SCOPE,
            "redirect_uri": self.settings.GITHUB_CALLBACK_URL,
        })
        return f"{self.settings.GITHUB_AUTHORIZE_URL}?{query}"

    @staticmethod
    def parse_callback(callback_url: str) -> str:
        """コールバックURLから認可コードを取り出す

        Args:
            callback_url: kanbanbar://oauth/callback?code=... 形式のURL

        Returns:
            str: 認可コード

        Raises:
            UserCancelledError: ユーザーが認可を拒否した場合
            InvalidResponseError: コードが含まれていない場合
        """
        params = parse_qs(urlparse(callback_url or "").query)
        if params.get("error") == ["access_denied"]:
            raise UserCancelledError()

        code = (params.get("code") or [""])[0]
        if not code:
            logger.error("Could not extract authorization code from callback URL")
            raise InvalidResponseError("No authorization code in callback URL")
        return code

    async def exchange_code_for_token(self, code: str) -> str:
        """認可コードをアクセストークンに交換

        GitHubはAcceptヘッダーに関わらずURLエンコード形式で返すことがあるため両方を受け付ける。
        """
        form = {
            "client_id": self.settings.GITHUB_CLIENT_ID,
            "client_secret": self.settings.GITHUB_CLIENT_SECRET,
            "code": code,
            "redirect_uri": self.settings.GITHUB_CALLBACK_URL,
        }
        loop = asyncio.get_running_loop()
        try:
            response = await loop.run_in_executor(
                None,
                lambda: requests.post(
                    self.settings.GITHUB_TOKEN_URL,
                    data=form,
                    headers={"Accept": "application/json"},
                    timeout=self.settings.REQUEST_TIMEOUT,
                ),
            )
        except requests.RequestException as e:
            raise NetworkError(f"Network error: {e}") from e

        logger.debug(f"Token exchange response status: {response.status_code}")
        if response.status_code != 200:
            raise InvalidResponseError(
                f"Token exchange failed (HTTP {response.status_code})",
                status_code=response.status_code,
            )

        text = response.text or ""
        if "access_token=" in text:
            token = (parse_qs(text).get("access_token") or [""])[0]
            if token:
                return token

        try:
            return TokenResponse.model_validate_json(text).access_token
        except ValidationError as e:
            raise InvalidResponseError("Could not decode token response") from e

    async def complete_authorization(self, callback_url: str) -> bool:
        """コールバックURLからサインインを完了

        失敗はログに記録し、未認証のまま返す。

        Returns:
            bool: サインインできた場合True
        """
        self.is_loading = True
        try:
            code = self.parse_callback(callback_url)
            token = await self.exchange_code_for_token(code)
            if not self.secret_store.save_access_token(token):
                raise AuthenticationFailedError("Could not store access token")
            return await self.validate_token(token)
        except ApiError as e:
            logger.error(f"Authentication failed: {e}")
            return False
        finally:
            self.is_loading = False

    async def validate_token(self, token: str) -> bool:
        """トークンでユーザーを取得できるか確認し、失敗したら保存済みトークンを破棄"""
        try:
            user = await self.client.fetch_current_user(token)
        except ApiError as e:
            logger.warning(f"Token validation failed: {e}")
            self.secret_store.delete_access_token()
            self.is_authenticated = False
            self.current_user = None
            return False

        self.current_user = user
        self.is_authenticated = True
        logger.info(f"Authenticated as {user.login}")
        return True

    async def restore_session(self) -> bool:
        """保存済みトークンがあれば検証してサインイン状態を復元"""
        token = self.secret_store.load_access_token()
        if not token:
            return False
        return await self.validate_token(token)

    def access_token(self) -> Optional[str]:
        return self.secret_store.load_access_token()

    def sign_out(self):
        self.secret_store.delete_access_token()
        self.is_authenticated = False
        self.current_user = None
        logger.info("Signed out")
