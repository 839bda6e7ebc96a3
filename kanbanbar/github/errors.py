from typing import List, Optional


class ApiError(Exception):
    """GitHub API操作のエラー基底クラス"""

    message = "Unknown error"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.message)

    @classmethod
    def wrap(cls, error: Exception) -> "ApiError":
        """任意の例外をApiError体系に変換

        Args:
            error: 捕捉した例外

        Returns:
            ApiError: ApiErrorならそのまま、それ以外はUnknownErrorで包む
        """
        if isinstance(error, ApiError):
            return error
        wrapped = UnknownError(f"Unknown error: {error}")
        wrapped.__cause__ = error
        return wrapped


class NoTokenError(ApiError):
    """認証トークンが存在しない"""

    message = "No authentication token found"


class InvalidURLError(ApiError):
    """URLが不正"""

    message = "Invalid URL"


class InvalidResponseError(ApiError):
    """HTTPエラー、パース不能なボディ、またはGraphQLエラー"""

    message = "Invalid response from GitHub API"

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class GraphQLError(InvalidResponseError):
    """レスポンスにトップレベルの errors 配列が含まれていた"""

    def __init__(self, messages: List[str], status_code: Optional[int] = None):
        super().__init__(f"GraphQL errors: {messages}", status_code=status_code)
        self.messages = messages


class NetworkError(ApiError):
    """DNS・タイムアウト・TLSなどの通信エラー"""

    message = "Network error"


class UserCancelledError(ApiError):
    """ユーザーがOAuthフローを中断した"""

    message = "User cancelled authentication"


class AuthenticationFailedError(ApiError):
    """認証フローが完了しなかった"""

    message = "Authentication failed"


class ResolutionError(ApiError):
    """ローカルでプロジェクト・フィールド・オプションを解決できなかった"""

    message = "Could not resolve project/field/option"


class InvalidInputError(ApiError):
    """送信前の入力検証に失敗した（空のタイトルなど）"""

    message = "Invalid input"


class UnknownError(ApiError):
    """その他のエラー"""
