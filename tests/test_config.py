import logging
import pytest
from pydantic import ValidationError
from kanbanbar.config import Settings
from kanbanbar.utils.logger import StructuredLogger, TokenRedactingFilter


def test_defaults():
    settings = Settings()
    assert settings.GITHUB_GRAPHQL_URL == "https://api.github.com/graphql"
    assert settings.KEYCHAIN_SERVICE == "com.kanbanbar.app"


def test_token_prefix_is_validated():
    assert Settings(GITHUB_TOKEN="ghp_abc").GITHUB_TOKEN == "ghp_abc"
    with pytest.raises(ValidationError):
        Settings(GITHUB_TOKEN="not-a-token")


def test_log_level_is_normalized():
    assert Settings(LOG_LEVEL="debug").LOG_LEVEL == "DEBUG"
    with pytest.raises(ValidationError):
        Settings(LOG_LEVEL="chatty")


def test_timeouts_must_be_positive():
    with pytest.raises(ValidationError):
        Settings(REQUEST_TIMEOUT=0)


def test_log_mutation_entry():
    entry = StructuredLogger.log_mutation("move_card", False, 12.5, {"item_id": "I_1"})

    assert entry["event"] == "mutation"
    assert entry["operation"] == "move_card"
    assert entry["success"] is False
    assert entry["duration_ms"] == 12.5
    assert entry["metadata"] == {"item_id": "I_1"}


def test_tokens_are_redacted_from_log_messages():
    record = logging.LogRecord("kanbanbar", logging.INFO, __file__, 1, "token=%s", ("ghp_secret123",), None)

    assert TokenRedactingFilter().filter(record)
    assert record.getMessage() == "token=ghp_***"
