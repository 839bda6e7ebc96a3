from enum import Enum


class TaskIntent(str, Enum):
    """自然文プロンプトから分類されるインテント"""

    CREATE_GENERAL_TASK = "create_general_task"
    CREATE_BUG_TASK = "create_bug_task"
    CREATE_FEATURE_TASK = "create_feature_task"
    MOVE_TASK_TO_DONE = "move_task_to_done"
    MOVE_TASK_TO_IN_PROGRESS = "move_task_to_in_progress"
    UPDATE_TASK_STATUS = "update_task_status"
    SHOW_HIGH_PRIORITY_TASKS = "show_high_priority_tasks"
    SHOW_IN_PROGRESS_TASKS = "show_in_progress_tasks"
    SHOW_COMPLETED_TASKS = "show_completed_tasks"
    SHOW_ALL_TASKS = "show_all_tasks"
    SET_HIGH_PRIORITY = "set_high_priority"
    SET_LOW_PRIORITY = "set_low_priority"
    SHOW_HELP = "show_help"

    @property
    def is_creation(self) -> bool:
        return self in (
            TaskIntent.CREATE_GENERAL_TASK,
            TaskIntent.CREATE_BUG_TASK,
            TaskIntent.CREATE_FEATURE_TASK,
        )


class TaskType(str, Enum):
    GENERAL = "general"
    BUG = "bug"
    FEATURE = "feature"


class TaskFilter(str, Enum):
    """Copilotの一覧表示用フィルタ"""

    ALL = "all"
    HIGH_PRIORITY = "high_priority"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"

    @property
    def display_name(self) -> str:
        return {
            TaskFilter.ALL: "All tasks",
            TaskFilter.HIGH_PRIORITY: "High priority tasks",
            TaskFilter.IN_PROGRESS: "Tasks in progress",
            TaskFilter.COMPLETED: "Completed tasks",
        }[self]
