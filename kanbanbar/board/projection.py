from enum import Enum
from typing import Dict, List, Optional, Sequence
from kanbanbar.github.models import FieldOption, Project, ProjectItem


class ItemFilter(str, Enum):
    """ボードのフィルタ

    ASSIGNED_TO_ME / CREATED_BY_ME / MENTIONED は受け付けるが未実装で、ALLと同じ扱い。
    """

    ALL = "All"
    ASSIGNED_TO_ME = "Assigned to me"
    CREATED_BY_ME = "Created by me"
    MENTIONED = "Mentioned"


def status_columns(project: Optional[Project]) -> List[FieldOption]:
    """StatusフィールドのオプションをカラムとしてName昇順で返す（安定ソート）

    Statusフィールドが複数ある場合は先頭のものを使う（move_cardが解決するフィールドと同じ）。
    """
    status_field = project.status_field if project else None
    if status_field is None:
        return []
    return sorted(status_field.options, key=lambda option: option.name)


def filter_items(
    project: Optional[Project], search_text: str = "", item_filter: ItemFilter = ItemFilter.ALL
) -> List[ProjectItem]:
    """検索文字列とフィルタでアイテムを絞り込む

    検索はcontentのタイトルに対する大文字小文字を区別しない部分一致。
    検索文字列が空でなければcontentの無いアイテムは除外される。
    """
    if project is None:
        return []

    items = list(project.items)

    if search_text:
        needle = search_text.casefold()
        items = [
            item
            for item in items
            if item.content is not None and needle in item.content.title.casefold()
        ]

    # TODO: ASSIGNED_TO_ME / CREATED_BY_ME / MENTIONED need the signed-in user's login;
    # until then every filter passes all items through.
    return items


class BoardProjection:
    """選択中プロジェクトからカンバンのカラムとアイテムを導出

    project・検索文字列・フィルタのいずれかが変わるたびに同期的に再計算する。
    """

    def __init__(self):
        self.selected_project: Optional[Project] = None
        self.search_text: str = ""
        self.item_filter: ItemFilter = ItemFilter.ALL
        self.filtered_items: List[ProjectItem] = []

    def show(self, project: Optional[Project]):
        """表示するプロジェクトを置き換えて再計算"""
        self.selected_project = project
        self.update_filter()

    def set_search_text(self, text: str):
        self.search_text = text or ""
        self.update_filter()

    def set_filter(self, item_filter: ItemFilter):
        self.item_filter = item_filter
        self.update_filter()

    def update_filter(self):
        self.filtered_items = filter_items(
            self.selected_project, self.search_text, self.item_filter
        )

    def sync_with(self, projects: Sequence[Project]):
        """新しいスナップショットから同じidのプロジェクトを選び直す

        未選択、または選択中のプロジェクトが消えていた場合は先頭のプロジェクトを選ぶ。
        """
        selected_id = self.selected_project.id if self.selected_project else None
        match = next((p for p in projects if p.id == selected_id), None)
        if match is None and projects:
            match = projects[0]
        self.show(match)

    @property
    def columns(self) -> List[FieldOption]:
        return status_columns(self.selected_project)

    @property
    def column_names(self) -> List[str]:
        return [column.name for column in self.columns]

    def items_for(self, column: str) -> List[ProjectItem]:
        """カラムに属するアイテム（どのカラムにも一致しないアイテムは表示されない）"""
        return [item for item in self.filtered_items if item.status == column]

    def board(self) -> Dict[str, List[ProjectItem]]:
        """カラム名 → アイテム一覧"""
        return {name: self.items_for(name) for name in self.column_names}
