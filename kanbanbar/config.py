import logging
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator
from functools import lru_cache


class Settings(BaseSettings):
    """アプリケーション設定"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # GitHub OAuth App
    GITHUB_CLIENT_ID: str = ""
    GITHUB_CLIENT_SECRET: str = ""
    GITHUB_OAUTH_SCOPE: str = "repo,read:user,project"
    GITHUB_CALLBACK_URL: str = "kanbanbar://oauth/callback"

    # 初回起動用のトークン（空の場合はKeychainのみ使用）
    GITHUB_TOKEN: str = ""

    # Endpoints
    GITHUB_GRAPHQL_URL: str = "https://api.github.com/graphql"
    GITHUB_API_URL: str = "https://api.github.com"
    GITHUB_AUTHORIZE_URL: str = "https://github.com/login/oauth/authorize"
    GITHUB_TOKEN_URL: str = "https://github.com/login/oauth/access_token"

    # Keychain
    KEYCHAIN_SERVICE: str = "com.kanbanbar.app"

    # Network
    REQUEST_TIMEOUT: int = 30

    # Rate Limiting
    GITHUB_API_MAX_REQUESTS: int = 5000
    GITHUB_API_WINDOW_SECONDS: int = 3600

    # Board
    REFRESH_INTERVAL_SECONDS: int = 300

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "logs/kanbanbar.log"

    @field_validator("GITHUB_TOKEN")
    @classmethod
    def validate_github_token(cls, v: str) -> str:
        """GitHub tokenの形式検証（空の場合はスキップ）"""
        valid_prefixes = ("ghp_", "github_pat_", "gho_", "ghs_", "ghu_")
        if v and not v.startswith(valid_prefixes):
            raise ValueError(
                "Invalid GitHub token format. Must start with one of: ghp_, github_pat_, gho_, ghs_, ghu_"
            )
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """ログレベル名の検証"""
        level = v.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Invalid log level: {v}")
        return level

    @field_validator("REQUEST_TIMEOUT", "REFRESH_INTERVAL_SECONDS")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("Must be a positive number of seconds")
        return v


@lru_cache()
def get_settings() -> Settings:
    """設定のシングルトンインスタンスを取得"""
    return Settings()


settings = get_settings()
