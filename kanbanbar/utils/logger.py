import json
import logging
import re
from datetime import datetime, timezone
from pathlib import Path
from kanbanbar.config import settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# ghp_ / gho_ / ghs_ / ghu_ / github_pat_ 形式のトークン
TOKEN_PATTERN = re.compile(r"\b(gh[opsu]_|github_pat_)[A-Za-z0-9_]+")


class TokenRedactingFilter(logging.Filter):
    """ログメッセージ中のGitHubトークンを伏せ字にする"""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = TOKEN_PATTERN.sub(r"\1***", message)
        if redacted != message:
            record.msg = redacted
            record.args = ()
        return True


def _handlers() -> list:
    log_path = Path(settings.LOG_FILE)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    file_handler = logging.FileHandler(log_path, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(logging.INFO)

    formatter = logging.Formatter(LOG_FORMAT)
    for handler in (file_handler, console_handler):
        handler.setFormatter(formatter)
        handler.addFilter(TokenRedactingFilter())
    return [file_handler, console_handler]


def get_logger(name: str) -> logging.Logger:
    """ロガーインスタンスを取得

    ファイル（DEBUG以上）とコンソール（INFO以上）に出力し、トークンは伏せ字にする。

    Args:
        name: ロガー名（通常は__name__を渡す）

    Returns:
        logging.Logger: 設定済みロガーインスタンス
    """
    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, settings.LOG_LEVEL))

    if not logger.handlers:
        for handler in _handlers():
            logger.addHandler(handler)

    return logger


class StructuredLogger:
    """構造化ログ出力用のヘルパークラス"""

    @staticmethod
    def log_mutation(
        operation: str,
        success: bool,
        duration_ms: float,
        metadata: dict = None,
    ) -> dict:
        """ミューテーション実行ログを記録

        Args:
            operation: 操作名（move_card, create_task, update_task）
            success: 成功フラグ
            duration_ms: 実行時間（ミリ秒）
            metadata: 追加メタデータ

        Returns:
            dict: 出力したログエントリ
        """
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "event": "mutation",
            "operation": operation,
            "success": success,
            "duration_ms": round(duration_ms, 2),
            "metadata": metadata or {},
        }

        logger = get_logger(__name__)
        logger.info(json.dumps(log_entry, ensure_ascii=False))
        return log_entry
