import uuid
from datetime import datetime, timezone
from typing import Iterable, List, Optional
from pydantic import BaseModel, Field
from kanbanbar.board.engine import MutationEngine
from kanbanbar.board.projection import BoardProjection
from kanbanbar.board.store import ProjectStore
from kanbanbar.copilot.classifier import classify, task_type_for
from kanbanbar.copilot.intents import TaskFilter, TaskIntent, TaskType
from kanbanbar.copilot.title import extract_task_title
from kanbanbar.github.models import FieldOption, Project, ProjectItem
from kanbanbar.utils.logger import get_logger

logger = get_logger(__name__)

DEFAULT_STATUS_NAMES = ("Backlog", "Todo")

UPDATE_STATUS_GUIDANCE = """🤔 To update a task status, please be more specific. You can say:

• "Move the latest task to Done"
• "Move task #123 to In Progress"
• "Update the bug task to Done"

Or use the quick actions above for common operations."""

PRIORITY_COMING_SOON = """🚧 Priority updates are coming soon!

For now, you can:
• Create new tasks with priority (e.g., "Create a high priority bug task")
• Move tasks between status columns
• View tasks by priority level"""

HELP_MESSAGE = """🤖 **AI Task Copilot Help**

I can help you with these commands:

**📝 Creating Tasks:**
• "Create a new task for user authentication"
• "Add a bug report for login issues"
• "Create a high priority feature for dark mode"

**🔄 Moving Tasks:**
• "Move the latest task to Done"
• "Update the recent task to In Progress"

**📋 Viewing Tasks:**
• "Show all high priority tasks"
• "List tasks in progress"
• "Show completed tasks"

**💡 Tips:**
• Be specific about task titles and priorities
• Use natural language - I'll understand!
• Try the quick action buttons for common tasks"""


class CopilotMessage(BaseModel):
    """Copilotの会話履歴"""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    content: str
    from_user: bool
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


def most_recent_item(items: Iterable[ProjectItem]) -> Optional[ProjectItem]:
    """作成日時が最も新しいアイテム

    作成日時を持つアイテムを優先し、日時が無い・同じ場合はidの文字列比較で決める。
    """
    def recency(item: ProjectItem):
        created = item.content.createdAt if item.content else None
        return (bool(created), created or "", item.id)

    return max(items, key=recency, default=None)


def matches_filter(item: ProjectItem, task_filter: TaskFilter) -> bool:
    status = (item.status or "").lower()
    if task_filter is TaskFilter.HIGH_PRIORITY:
        return "high" in (item.priority or "").lower()
    if task_filter is TaskFilter.IN_PROGRESS:
        return "progress" in status
    if task_filter is TaskFilter.COMPLETED:
        return "done" in status or "complete" in status
    return True


def format_task_listing(items: List[ProjectItem], task_filter: TaskFilter) -> str:
    """タスク一覧をテキストに整形"""
    if not items:
        return "📭 No tasks found matching your criteria."

    lines = [f"📋 {task_filter.display_name} ({len(items)}):", ""]
    for index, item in enumerate(items):
        title = item.content.title if item.content else "Draft Task"
        number = item.content.number if item.content else None
        number_text = f"#{number}" if number is not None else ""

        lines.append(f"• {title} {number_text}".rstrip())
        lines.append(f"  Status: {item.status or 'No Status'} | Priority: {item.priority or 'No Priority'}")
        if index < len(items) - 1:
            lines.append("")

    return "\n".join(lines)


class TaskCopilot:
    """自然文のプロンプトをタスク操作に変換して実行"""

    def __init__(
        self,
        store: ProjectStore,
        engine: MutationEngine,
        board: Optional[BoardProjection] = None,
    ):
        self.store = store
        self.engine = engine
        self.board = board
        self.messages: List[CopilotMessage] = []

    async def process_message(self, prompt: str) -> str:
        """プロンプトを分類・実行し、返信を履歴に追加して返す"""
        self.messages.append(CopilotMessage(content=prompt, from_user=True))

        intent = classify(prompt)
        logger.info(f"Copilot intent: {intent.value}")
        reply = await self.execute_intent(intent, prompt)

        self.messages.append(CopilotMessage(content=reply, from_user=False))
        return reply

    async def execute_intent(self, intent: TaskIntent, prompt: str) -> str:
        if intent.is_creation:
            return await self.create_task(prompt, task_type_for(intent))
        if intent is TaskIntent.MOVE_TASK_TO_DONE:
            return await self.move_recent_task(TaskFilter.COMPLETED)
        if intent is TaskIntent.MOVE_TASK_TO_IN_PROGRESS:
            return await self.move_recent_task(TaskFilter.IN_PROGRESS)
        if intent is TaskIntent.UPDATE_TASK_STATUS:
            return UPDATE_STATUS_GUIDANCE
        if intent is TaskIntent.SHOW_HIGH_PRIORITY_TASKS:
            return self.show_tasks(TaskFilter.HIGH_PRIORITY)
        if intent is TaskIntent.SHOW_IN_PROGRESS_TASKS:
            return self.show_tasks(TaskFilter.IN_PROGRESS)
        if intent is TaskIntent.SHOW_COMPLETED_TASKS:
            return self.show_tasks(TaskFilter.COMPLETED)
        if intent is TaskIntent.SHOW_ALL_TASKS:
            return self.show_tasks(TaskFilter.ALL)
        if intent in (TaskIntent.SET_HIGH_PRIORITY, TaskIntent.SET_LOW_PRIORITY):
            return PRIORITY_COMING_SOON
        return HELP_MESSAGE

    def target_project(self) -> Optional[Project]:
        """操作対象のプロジェクト（ボードで選択中のもの、無ければ先頭）"""
        if self.board is not None and self.board.selected_project is not None:
            selected = self.store.project(self.board.selected_project.id)
            if selected is not None:
                return selected
        projects = self.store.current_projects()
        return projects[0] if projects else None

    @staticmethod
    def priority_option(project: Project, prompt: str) -> Optional[FieldOption]:
        field = project.priority_field
        if field is None:
            return None

        text = prompt.lower()
        if "high priority" in text or "urgent" in text:
            wanted = "high"
        elif "low priority" in text:
            wanted = "low"
        else:
            return None
        return next((o for o in field.options if wanted in o.name.lower()), None)

    @staticmethod
    def status_name_for(project: Project, task_filter: TaskFilter) -> str:
        """移動先カラムのオプション名をプロジェクトの実際の名前で解決"""
        options = project.status_field.options if project.status_field else []
        if task_filter is TaskFilter.COMPLETED:
            exact = next((o.name for o in options if o.name.lower() == "done"), None)
            if exact:
                return exact
            loose = next(
                (o.name for o in options if "done" in o.name.lower() or "complete" in o.name.lower()),
                None,
            )
            return loose or "Done"

        return next((o.name for o in options if "progress" in o.name.lower()), "In progress")

    async def create_task(self, prompt: str, task_type: TaskType) -> str:
        project = self.target_project()
        if project is None:
            return "❌ No projects available. Please connect to a project first."

        title = extract_task_title(prompt, task_type)

        status_field = project.status_field
        default_status = None
        if status_field is not None:
            default_status = next(
                (o for o in status_field.options if o.name in DEFAULT_STATUS_NAMES), None
            )
        priority = self.priority_option(project, prompt)

        success = await self.engine.create_task(
            project.id, title, body=None, status=default_status, priority=priority
        )
        if not success:
            return "❌ Failed to create task. Please check your connection and try again."

        priority_text = f" with {priority.name.lower()} priority" if priority else ""
        status_text = default_status.name if default_status else "default status"
        return (
            f"✅ Successfully created task: \"{title}\"\n\n"
            f"📋 Status: {status_text}{priority_text}\n"
            f"🎯 Project: {project.title}"
        )

    async def move_recent_task(self, target: TaskFilter) -> str:
        project = self.target_project()
        if project is None:
            return "❌ No projects available."

        status = self.status_name_for(project, target)
        candidates = [
            item for item in project.items
            if item.status != status and item.content is not None
        ]
        recent = most_recent_item(candidates)
        if recent is None:
            return f"❌ No tasks found that can be moved to {status}."

        success = await self.engine.move_card(recent.id, status)
        if not success:
            return "❌ Failed to move task. Please try again."

        return (
            f"✅ Successfully moved task to {status}:\n\n"
            f"📋 {recent.content.title}\n"
            f"🎯 Project: {project.title}"
        )

    def show_tasks(self, task_filter: TaskFilter) -> str:
        project = self.target_project()
        if project is None:
            return "❌ No projects available."

        items = [item for item in project.items if matches_filter(item, task_filter)]
        return format_task_listing(items, task_filter)
