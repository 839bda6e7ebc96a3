import asyncio
import requests
from typing import Any, Dict, Optional
from kanbanbar.config import Settings, settings as default_settings
from kanbanbar.github.errors import (
    GraphQLError,
    InvalidResponseError,
    NetworkError,
    NoTokenError,
)
from kanbanbar.github.models import GitHubUser
from kanbanbar.utils.logger import get_logger
from kanbanbar.utils.rate_limiter import RateLimiter

logger = get_logger(__name__)


class GitHubClient:
    """GitHub GraphQL APIクライアント

    リトライは行わない。失敗時の再実行は呼び出し側が判断する。
    """

    def __init__(self, settings: Optional[Settings] = None, rate_limiter: Optional[RateLimiter] = None):
        self.settings = settings or default_settings
        self.rate_limiter = rate_limiter or RateLimiter(
            max_requests=self.settings.GITHUB_API_MAX_REQUESTS,
            window_seconds=self.settings.GITHUB_API_WINDOW_SECONDS,
        )

    @staticmethod
    def _headers(token: str) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }

    async def _send(self, method: str, url: str, **kwargs) -> requests.Response:
        """同期のrequestsをエグゼキュータで実行し、通信エラーをNetworkErrorに変換"""
        await self.rate_limiter.acquire()

        sender = requests.post if method == "POST" else requests.get
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(
                None,
                lambda: sender(url, timeout=self.settings.REQUEST_TIMEOUT, **kwargs),
            )
        except requests.RequestException as e:
            logger.error(f"Network error calling {url}: {e}")
            raise NetworkError(f"Network error: {e}") from e

    async def execute_query(
        self, query: str, token: Optional[str], variables: Dict[str, Any] = None
    ) -> Dict[str, Any]:
        """GraphQLクエリ・ミューテーションを実行

        Args:
            query: GraphQLドキュメント文字列
            token: Bearerトークン
            variables: クエリ変数

        Returns:
            Dict[str, Any]: レスポンスのdata部分

        Raises:
            NoTokenError: トークンが空の場合（通信前に失敗）
            NetworkError: 通信レベルのエラー
            InvalidResponseError: 2xx以外、またはパース不能なボディ
            GraphQLError: HTTP 200でもトップレベルのerrors配列が空でない場合
        """
        if not token:
            raise NoTokenError()

        payload = {"query": query}
        if variables:
            payload["variables"] = variables

        response = await self._send(
            "POST",
            self.settings.GITHUB_GRAPHQL_URL,
            json=payload,
            headers=self._headers(token),
        )

        if not 200 <= response.status_code < 300:
            logger.error(f"GraphQL HTTP status: {response.status_code}")
            raise InvalidResponseError(
                f"Invalid response from GitHub API (HTTP {response.status_code})",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise InvalidResponseError(
                "Response body is not valid JSON", status_code=response.status_code
            ) from e

        if not isinstance(data, dict):
            raise InvalidResponseError(
                "Response body is not a JSON object", status_code=response.status_code
            )

        errors = data.get("errors")
        if isinstance(errors, list) and errors:
            messages = []
            for error in errors:
                message = error.get("message") if isinstance(error, dict) else str(error)
                logger.error(f"GraphQL Error: {message}")
                messages.append(message)
            raise GraphQLError(messages, status_code=response.status_code)

        return data.get("data") or {}

    async def fetch_current_user(self, token: Optional[str]) -> GitHubUser:
        """REST APIで認証ユーザーを取得（トークン検証を兼ねる）

        Args:
            token: Bearerトークン

        Returns:
            GitHubUser: 認証ユーザー

        Raises:
            NoTokenError, NetworkError, InvalidResponseError
        """
        if not token:
            raise NoTokenError()

        response = await self._send(
            "GET",
            f"{self.settings.GITHUB_API_URL}/user",
            headers={
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github.v3+json",
            },
        )
        logger.debug(f"GitHub API /user status: {response.status_code}")

        if not 200 <= response.status_code < 300:
            raise InvalidResponseError(
                f"GET /user failed (HTTP {response.status_code})",
                status_code=response.status_code,
            )

        try:
            return GitHubUser.model_validate(response.json())
        except ValueError as e:
            raise InvalidResponseError("Could not decode GitHub user") from e
