"""
Keyword-based intent classification for copilot prompts.

A prompt is lowercased and checked against fixed keyword groups in priority
order: creation, motion, query, priority, then help. The first group that
matches decides the intent, so "create ... and show ..." is a creation.
"""

from kanbanbar.copilot.intents import TaskIntent, TaskType

CREATE_KEYWORDS = ("create", "add", "new")
MOVE_KEYWORDS = ("move", "update", "change")
QUERY_KEYWORDS = ("show", "find", "list")


def _contains_any(text: str, words) -> bool:
    return any(word in text for word in words)


def classify(prompt: str) -> TaskIntent:
    """プロンプトをインテントに分類

    Args:
        prompt: ユーザーの入力文

    Returns:
        TaskIntent: 最初に一致したカテゴリのインテント（一致なしはSHOW_HELP）
    """
    text = (prompt or "").lower()

    if _contains_any(text, CREATE_KEYWORDS):
        if "bug" in text:
            return TaskIntent.CREATE_BUG_TASK
        elif "feature" in text:
            return TaskIntent.CREATE_FEATURE_TASK
        return TaskIntent.CREATE_GENERAL_TASK

    if _contains_any(text, MOVE_KEYWORDS):
        if _contains_any(text, ("done", "complete")):
            return TaskIntent.MOVE_TASK_TO_DONE
        elif _contains_any(text, ("progress", "working")):
            return TaskIntent.MOVE_TASK_TO_IN_PROGRESS
        return TaskIntent.UPDATE_TASK_STATUS

    if _contains_any(text, QUERY_KEYWORDS):
        if _contains_any(text, ("high priority", "urgent")):
            return TaskIntent.SHOW_HIGH_PRIORITY_TASKS
        elif "progress" in text:
            return TaskIntent.SHOW_IN_PROGRESS_TASKS
        elif _contains_any(text, ("done", "complete")):
            return TaskIntent.SHOW_COMPLETED_TASKS
        return TaskIntent.SHOW_ALL_TASKS

    if "priority" in text:
        if _contains_any(text, ("high", "urgent")):
            return TaskIntent.SET_HIGH_PRIORITY
        elif "low" in text:
            return TaskIntent.SET_LOW_PRIORITY

    return TaskIntent.SHOW_HELP


def task_type_for(intent: TaskIntent) -> TaskType:
    """作成系インテントのタスク種別"""
    if intent is TaskIntent.CREATE_BUG_TASK:
        return TaskType.BUG
    if intent is TaskIntent.CREATE_FEATURE_TASK:
        return TaskType.FEATURE
    return TaskType.GENERAL
