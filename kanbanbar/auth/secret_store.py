import keyring
from keyring.errors import KeyringError, PasswordDeleteError
from typing import Optional
from kanbanbar.config import settings
from kanbanbar.utils.logger import get_logger

logger = get_logger(__name__)

ACCESS_TOKEN_KEY = "github_access_token"


class KeyringSecretStore:
    """OSのキーチェーン（keyring）に文字列を保存する

    keyringはプラットフォームに応じたバックエンド（macOS Keychain等）を自動で選ぶ。
    """

    def __init__(self, service: Optional[str] = None):
        self.service = service or settings.KEYCHAIN_SERVICE

    def save(self, key: str, value: str) -> bool:
        """値を保存（既存の値は上書き）

        Args:
            key: アカウント名
            value: 保存する値

        Returns:
            bool: 成功ならTrue
        """
        try:
            keyring.set_password(self.service, key, value)
        except KeyringError as e:
            logger.error(f"Failed to store '{key}' in keyring: {e}")
            return False
        logger.info(f"Stored '{key}' in keyring")
        return True

    def load(self, key: str) -> Optional[str]:
        try:
            return keyring.get_password(self.service, key)
        except KeyringError as e:
            logger.error(f"Failed to read '{key}' from keyring: {e}")
            return None

    def delete(self, key: str) -> bool:
        """値を削除（存在しない場合も成功扱い）"""
        if self.load(key) is None:
            return True
        try:
            keyring.delete_password(self.service, key)
        except PasswordDeleteError as e:
            logger.error(f"Failed to delete '{key}' from keyring: {e}")
            return False
        except KeyringError as e:
            logger.error(f"Keyring error deleting '{key}': {e}")
            return False
        logger.info(f"Deleted '{key}' from keyring")
        return True

    def save_access_token(self, token: str) -> bool:
        return self.save(ACCESS_TOKEN_KEY, token)

    def load_access_token(self) -> Optional[str]:
        return self.load(ACCESS_TOKEN_KEY)

    def delete_access_token(self) -> bool:
        return self.delete(ACCESS_TOKEN_KEY)
