"""
Task title extraction for copilot prompts.
Strips command vocabulary from a free-text prompt and tags bug/feature titles.
"""

import re
from kanbanbar.copilot.intents import TaskType
from kanbanbar.utils.logger import get_logger

logger = get_logger(__name__)

# GitHub title length limit
MAX_TITLE_LENGTH = 256
MIN_TITLE_LENGTH = 3

# Removed wherever they stand as whole whitespace-separated words
COMMAND_WORDS = ("create", "add", "new", "task", "bug", "feature", "issue")
FILLER_WORDS = ("a", "an", "the")
PRIORITY_PHRASES = ("high priority", "low priority", "urgent")

# Connectors left dangling at the start once the command words are gone
LEADING_CONNECTORS = re.compile(r'^(?:for|to|about|called|named|titled|:|-)\s+', re.IGNORECASE)

PREFIXES = {
    TaskType.BUG: ("[BUG]", ("[bug]", "bug:")),
    TaskType.FEATURE: ("[FEATURE]", ("[feature]", "feature:")),
}

FALLBACK_TITLES = {
    TaskType.BUG: "[BUG] New bug report",
    TaskType.FEATURE: "[FEATURE] New feature request",
    TaskType.GENERAL: "New task",
}


def _word_pattern(words) -> re.Pattern:
    # Longest first so "high priority" wins over any single word inside it
    alternatives = sorted((re.escape(w) for w in words), key=len, reverse=True)
    return re.compile(r'(?<!\S)(?:' + '|'.join(alternatives) + r')(?!\S)', re.IGNORECASE)


STRIP_PATTERN = _word_pattern(PRIORITY_PHRASES + COMMAND_WORDS + FILLER_WORDS)


def strip_command_words(prompt: str) -> str:
    """
    Remove command vocabulary from a prompt.

    Args:
        prompt: Free-text prompt

    Returns:
        Remaining text with whitespace collapsed
    """
    text = STRIP_PATTERN.sub(" ", prompt or "")
    text = re.sub(r'\s+', ' ', text).strip()

    previous = None
    while previous != text:
        previous = text
        text = LEADING_CONNECTORS.sub("", text).strip()

    return text


def truncate_title(title: str) -> str:
    """
    Truncate title to GitHub's length limit.

    Args:
        title: Title to check

    Returns:
        Title no longer than MAX_TITLE_LENGTH
    """
    if len(title) <= MAX_TITLE_LENGTH:
        return title

    logger.warning(f"Title exceeds {MAX_TITLE_LENGTH} characters: {len(title)}")
    return title[:MAX_TITLE_LENGTH - 3] + "..."


def extract_task_title(prompt: str, task_type: TaskType = TaskType.GENERAL) -> str:
    """
    Build a task title from a creation prompt.

    Args:
        prompt: Free-text prompt such as "Create a bug for login"
        task_type: Bug and feature titles get a [BUG]/[FEATURE] prefix

    Returns:
        Extracted title, or a canned title when fewer than 3 characters remain
    """
    title = strip_command_words(prompt)

    if len(title) < MIN_TITLE_LENGTH:
        return FALLBACK_TITLES[task_type]

    if task_type in PREFIXES:
        prefix, existing = PREFIXES[task_type]
        if not title.lower().startswith(existing):
            title = f"{prefix} {title}"

    return truncate_title(title)
