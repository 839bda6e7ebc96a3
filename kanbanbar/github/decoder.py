"""
GraphQL response decoding.

Maps raw Projects v2 JSON onto the snapshot models in kanbanbar.github.models.
A malformed field, item or project is degraded or dropped on its own; it never
aborts decoding of its siblings or of the enclosing response.
"""

import uuid
from typing import Any, Dict, List, Optional
from pydantic import ValidationError
from kanbanbar.github.models import (
    CONTENT_VARIANTS,
    FieldOption,
    FieldRef,
    FieldValue,
    ItemContent,
    Project,
    ProjectField,
    ProjectItem,
    ProjectSummary,
    unwrap_nodes,
)
from kanbanbar.utils.logger import get_logger

logger = get_logger(__name__)

UNKNOWN_FIELD_NAME = "Unknown Field"


def _projects_connection(data: Dict[str, Any]) -> list:
    """viewer（またはuser）配下のprojectsV2ノードを取り出す"""
    if not isinstance(data, dict):
        return []
    owner = data.get("viewer") or data.get("user") or {}
    if not isinstance(owner, dict):
        return []
    return unwrap_nodes(owner.get("projectsV2"))


def decode_content(raw: Any) -> Optional[ItemContent]:
    """アイテムのcontentをIssue → PullRequest → DraftIssueの順に試行

    Args:
        raw: contentのJSON

    Returns:
        最初に構造的に一致したバリアント。どれにも一致しない場合はNone
    """
    if not isinstance(raw, dict):
        return None

    for variant in CONTENT_VARIANTS:
        try:
            return variant.model_validate(raw)
        except ValidationError:
            continue

    logger.debug(f"Unrecognized item content with keys: {sorted(raw.keys())}")
    return None


def decode_option(raw: Any) -> Optional[FieldOption]:
    if not isinstance(raw, dict):
        return None
    try:
        return FieldOption.model_validate(raw)
    except ValidationError:
        logger.debug(f"Dropping malformed field option: {raw}")
        return None


def decode_field(raw: Dict[str, Any]) -> ProjectField:
    """フィールドをデコード

    idやnameが欠けている場合は合成idとフォールバック名で補う。
    optionsが無い場合は空リスト。
    """
    field_id = raw.get("id")
    if not isinstance(field_id, str):
        field_id = f"unknown-{uuid.uuid4()}"

    name = raw.get("name")
    if not isinstance(name, str):
        name = UNKNOWN_FIELD_NAME

    options = [
        option
        for option in (decode_option(o) for o in unwrap_nodes(raw.get("options")))
        if option is not None
    ]
    return ProjectField(id=field_id, name=name, options=options)


def decode_fields(raw: Any) -> List[ProjectField]:
    """フィールド一覧をデコード（null要素は除外）"""
    return [decode_field(node) for node in unwrap_nodes(raw) if isinstance(node, dict)]


def decode_field_value(raw: Dict[str, Any]) -> FieldValue:
    field = None
    raw_field = raw.get("field")
    if isinstance(raw_field, dict):
        try:
            field = FieldRef.model_validate(raw_field)
        except ValidationError:
            field = None

    name = raw.get("name")
    option_id = raw.get("optionId")
    return FieldValue(
        name=name if isinstance(name, str) else None,
        optionId=option_id if isinstance(option_id, str) else None,
        field=field,
    )


def decode_item(raw: Dict[str, Any]) -> Optional[ProjectItem]:
    """アイテムをデコード

    idが無いアイテムはNone。contentが未知の形状の場合はcontent=Noneのアイテムを返す。
    """
    item_id = raw.get("id")
    if not isinstance(item_id, str):
        logger.warning("Dropping project item without id")
        return None

    field_values = [
        decode_field_value(node)
        for node in unwrap_nodes(raw.get("fieldValues"))
        if isinstance(node, dict)
    ]
    return ProjectItem(
        id=item_id,
        fieldValues=field_values,
        content=decode_content(raw.get("content")),
    )


def decode_items(raw: Any) -> List[ProjectItem]:
    items = []
    for node in unwrap_nodes(raw):
        if not isinstance(node, dict):
            continue
        item = decode_item(node)
        if item is not None:
            items.append(item)
    return items


def decode_project(raw: Dict[str, Any]) -> Optional[Project]:
    """プロジェクトをデコード（idが無い場合はNone）"""
    project_id = raw.get("id")
    if not isinstance(project_id, str):
        logger.warning("Dropping project without id")
        return None

    number = raw.get("number")
    title = raw.get("title")
    url = raw.get("url")
    return Project(
        id=project_id,
        number=number if isinstance(number, int) else 0,
        title=title if isinstance(title, str) else "",
        url=url if isinstance(url, str) else "",
        fields=decode_fields(raw.get("fields")),
        items=decode_items(raw.get("items")),
    )


def decode_projects(data: Dict[str, Any]) -> List[Project]:
    """GraphQLレスポンスのdataからプロジェクト一覧をデコード

    Args:
        data: execute_queryが返すdata部分

    Returns:
        List[Project]: デコードできたプロジェクト（失敗したプロジェクトは除外）
    """
    projects = []
    for node in _projects_connection(data):
        if not isinstance(node, dict):
            continue
        try:
            project = decode_project(node)
        except (ValidationError, TypeError, AttributeError) as e:
            logger.warning(f"Failed to decode project {node.get('id')}: {e}")
            continue
        if project is not None:
            projects.append(project)
    return projects


def decode_project_summaries(data: Dict[str, Any]) -> List[ProjectSummary]:
    """フォールバッククエリのレスポンスをデコード"""
    summaries = []
    for node in _projects_connection(data):
        try:
            summaries.append(ProjectSummary.model_validate(node))
        except ValidationError as e:
            logger.warning(f"Failed to decode project summary: {e}")
    return summaries
