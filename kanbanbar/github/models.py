from typing import Any, List, Optional, Union
from pydantic import BaseModel, ConfigDict, field_validator

STATUS_FIELD = "Status"
PRIORITY_FIELD = "Priority"


def unwrap_nodes(value: Any) -> list:
    """GraphQLコネクション（{"nodes": [...]}）をリストに展開し、nullを除外"""
    if value is None:
        return []
    if isinstance(value, dict):
        value = value.get("nodes") or []
    if not isinstance(value, list):
        return []
    return [node for node in value if node is not None]


class Snapshot(BaseModel):
    """イミュータブルなスナップショット値の基底クラス"""

    model_config = ConfigDict(frozen=True)


class GitHubUser(BaseModel):
    """GitHubユーザー（REST /user）"""

    id: int
    login: str
    avatar_url: str = ""
    name: Optional[str] = None
    email: Optional[str] = None


class Assignee(Snapshot):
    id: str
    login: str
    avatarUrl: str = ""

    @field_validator("avatarUrl", mode="before")
    @classmethod
    def blank_if_null(cls, v):
        return "" if v is None else v


class Label(Snapshot):
    id: str
    name: str
    color: str = ""

    @field_validator("color", mode="before")
    @classmethod
    def blank_if_null(cls, v):
        return "" if v is None else v


class Issue(Snapshot):
    """GitHub Issue"""

    title: str
    number: int
    state: str
    url: str
    createdAt: str
    updatedAt: str
    assignees: List[Assignee] = []
    labels: List[Label] = []

    @field_validator("assignees", "labels", mode="before")
    @classmethod
    def unwrap_connections(cls, v):
        return unwrap_nodes(v)

    @property
    def body(self) -> Optional[str]:
        return None


class PullRequest(Snapshot):
    """GitHub Pull Request（ラベルは取得しない）"""

    title: str
    number: int
    state: str
    url: str
    createdAt: str
    updatedAt: str
    assignees: List[Assignee] = []

    @field_validator("assignees", mode="before")
    @classmethod
    def unwrap_connections(cls, v):
        return unwrap_nodes(v)

    @property
    def body(self) -> Optional[str]:
        return None

    @property
    def labels(self) -> List[Label]:
        return []


class DraftIssue(Snapshot):
    """Draft issue（番号・担当者・ラベル・URLなし、stateは常に"draft"）"""

    title: str
    body: Optional[str] = None
    createdAt: Optional[str] = None
    updatedAt: Optional[str] = None

    @property
    def number(self) -> Optional[int]:
        return None

    @property
    def state(self) -> str:
        return "draft"

    @property
    def url(self) -> str:
        return ""

    @property
    def assignees(self) -> List[Assignee]:
        return []

    @property
    def labels(self) -> List[Label]:
        return []


ItemContent = Union[Issue, PullRequest, DraftIssue]

# デコード時に試行する順序
CONTENT_VARIANTS = (Issue, PullRequest, DraftIssue)


class FieldOption(Snapshot):
    """Single-selectフィールドの選択肢"""

    id: str
    name: str
    color: str = ""

    @field_validator("color", mode="before")
    @classmethod
    def blank_if_null(cls, v):
        return "" if v is None else v


class ProjectField(Snapshot):
    """プロジェクトのフィールド（optionsはsingle-selectのみ）"""

    id: str
    name: str
    options: List[FieldOption] = []

    def option_named(self, name: str) -> Optional[FieldOption]:
        return next((o for o in self.options if o.name == name), None)

    def has_option(self, option_id: str) -> bool:
        return any(o.id == option_id for o in self.options)


class FieldRef(Snapshot):
    """フィールド値が属するフィールドへの参照（id + nameのみ）"""

    id: str
    name: str


class FieldValue(Snapshot):
    """アイテムのフィールド値"""

    name: Optional[str] = None
    optionId: Optional[str] = None
    field: Optional[FieldRef] = None

    @property
    def field_name(self) -> Optional[str]:
        return self.field.name if self.field else None


class ProjectItem(Snapshot):
    """プロジェクトアイテム

    contentがNoneの場合はデコード失敗または未対応の種別（Draftとは限らない）。
    """

    id: str
    fieldValues: List[FieldValue] = []
    content: Optional[ItemContent] = None

    def field_value(self, field_name: str) -> Optional[FieldValue]:
        """指定フィールドの値を取得

        fieldValuesを先頭から走査し、最初に一致したものを返す。
        同じフィールドの値が重複していても先勝ち。
        """
        for value in self.fieldValues:
            if value.field_name == field_name:
                return value
        return None

    @property
    def status(self) -> Optional[str]:
        value = self.field_value(STATUS_FIELD)
        return value.name if value else None

    @property
    def priority(self) -> Optional[str]:
        value = self.field_value(PRIORITY_FIELD)
        return value.name if value else None

    def with_field_value(self, value: FieldValue) -> "ProjectItem":
        """同名フィールドの値を取り除き、新しい値を末尾に追加したコピーを返す"""
        kept = [v for v in self.fieldValues if v.field_name != value.field_name]
        return self.model_copy(update={"fieldValues": kept + [value]})

    def with_content(self, content: Optional[ItemContent]) -> "ProjectItem":
        return self.model_copy(update={"content": content})


class Project(Snapshot):
    """GitHub Project (v2) のスナップショット"""

    id: str
    number: int = 0
    title: str = ""
    url: str = ""
    fields: List[ProjectField] = []
    items: List[ProjectItem] = []

    def field_named(self, name: str) -> Optional[ProjectField]:
        return next((f for f in self.fields if f.name == name), None)

    @property
    def status_field(self) -> Optional[ProjectField]:
        return self.field_named(STATUS_FIELD)

    @property
    def priority_field(self) -> Optional[ProjectField]:
        return self.field_named(PRIORITY_FIELD)

    def item(self, item_id: str) -> Optional[ProjectItem]:
        return next((i for i in self.items if i.id == item_id), None)

    def contains_item(self, item_id: str) -> bool:
        return self.item(item_id) is not None

    def replacing_item(self, item: ProjectItem) -> "Project":
        """同じidのアイテムを差し替えた新しいProjectを返す"""
        items = [item if i.id == item.id else i for i in self.items]
        return self.model_copy(update={"items": items})


class ProjectSummary(BaseModel):
    """フォールバッククエリで取得するプロジェクト基本情報"""

    id: str
    number: int
    title: str
    url: str
