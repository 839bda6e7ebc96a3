import time
from typing import Any, Callable, Dict, Optional, Tuple
from kanbanbar.board.projection import BoardProjection
from kanbanbar.board.store import ProjectStore
from kanbanbar.github.client import GitHubClient
from kanbanbar.github.errors import (
    ApiError,
    InvalidInputError,
    InvalidResponseError,
    NoTokenError,
    ResolutionError,
)
from kanbanbar.github.models import (
    DraftIssue,
    FieldOption,
    FieldRef,
    FieldValue,
    Project,
    ProjectField,
)
from kanbanbar.github.mutations import (
    ADD_DRAFT_ISSUE,
    UPDATE_DRAFT_ISSUE,
    UPDATE_PROJECT_FIELD,
)
from kanbanbar.utils.logger import StructuredLogger, get_logger

logger = get_logger(__name__)


class MutationEngine:
    """楽観的更新付きでプロジェクトアイテムを変更する

    1. 表示中のプロジェクトに楽観的な変更を適用（新しいスナップショットを作るだけで既存値は変更しない）
    2. GraphQLミューテーションを送信
    3. 成功したらProjectStoreで全件再取得し、サーバーの状態で上書き
    4. 失敗したら保持していた変更前のスナップショットに戻してエラーを記録

    同じアイテムへの並行した操作は同期しない。最後に適用されたレスポンスが勝ち、
    成功後の再取得でサーバーの最終状態に収束する。
    """

    def __init__(
        self,
        client: GitHubClient,
        store: ProjectStore,
        board: BoardProjection,
        token_provider: Callable[[], Optional[str]],
    ):
        self.client = client
        self.store = store
        self.board = board
        self.token_provider = token_provider
        self.last_error: Optional[ApiError] = None

    def _require_token(self) -> str:
        token = self.token_provider()
        if not token:
            raise NoTokenError()
        return token

    async def move_card(self, item_id: str, target_status: str, optimistic: bool = True) -> bool:
        """アイテムのStatusを変更（カードを別カラムへ移動）

        Args:
            item_id: プロジェクトアイテムのID
            target_status: 移動先のStatusオプション名
            optimistic: 表示中のプロジェクトに即時反映するか

        Returns:
            bool: 成功ならTrue。失敗時はlast_errorにエラーを記録
        """
        started = time.perf_counter()
        metadata = {"item_id": item_id, "target_status": target_status}

        try:
            token = self._require_token()
        except NoTokenError as e:
            return self._fail("move_card", e, started, metadata)

        project = self.store.find_project_containing(item_id)
        status_field = project.status_field if project else None
        option = status_field.option_named(target_status) if status_field else None
        if option is None:
            logger.warning(
                f"Could not find project, field, or option for move operation "
                f"(item={item_id}, status={target_status}, "
                f"projects={[p.title for p in self.store.current_projects()]})"
            )
            return self._fail(
                "move_card",
                ResolutionError(f"Could not resolve project/field/option for '{target_status}'"),
                started,
                metadata,
            )

        previous, displayed = (None, None)
        if optimistic:
            previous, displayed = self._apply_status_locally(item_id, status_field, option)

        try:
            await self._set_single_select(token, project.id, item_id, status_field.id, option.id)
        except Exception as e:
            self._revert(previous, displayed)
            return self._fail("move_card", ApiError.wrap(e), started, metadata)

        await self._refresh(token)
        self._succeed("move_card", started, metadata)
        return True

    async def create_task(
        self,
        project_id: str,
        title: str,
        body: Optional[str] = None,
        status: Optional[FieldOption] = None,
        priority: Optional[FieldOption] = None,
    ) -> bool:
        """Draft issueを作成し、必要ならStatus・Priorityを設定

        作成・Status設定・Priority設定はそれぞれ独立したリクエスト。
        2番目以降が失敗しても作成済みのDraft issueは削除しない。

        Args:
            project_id: 作成先プロジェクトのID
            title: タイトル
            body: 本文（空の場合は送信しない）
            status: 設定するStatusオプション
            priority: 設定するPriorityオプション（プロジェクトのPriorityフィールドに存在する場合のみ）

        Returns:
            bool: 全ステップ成功ならTrue
        """
        started = time.perf_counter()
        title = (title or "").strip()
        body = (body or "").strip() or None
        metadata = {"project_id": project_id, "title": title}

        if not title:
            return self._fail("create_task", InvalidInputError("Task title must not be empty"), started, metadata)

        try:
            token = self._require_token()
        except NoTokenError as e:
            return self._fail("create_task", e, started, metadata)

        variables: Dict[str, Any] = {"projectId": project_id, "title": title}
        if body:
            variables["body"] = body

        try:
            data = await self.client.execute_query(ADD_DRAFT_ISSUE, token, variables)
        except Exception as e:
            return self._fail("create_task", ApiError.wrap(e), started, metadata)

        item_id = ((data.get("addProjectV2DraftIssue") or {}).get("projectItem") or {}).get("id")
        if not item_id:
            return self._fail(
                "create_task",
                InvalidResponseError("Failed to extract item ID from create response"),
                started,
                metadata,
            )
        metadata["item_id"] = item_id

        project = self.store.project(project_id)
        try:
            if status is not None:
                status_field = project.status_field if project else None
                if status_field is not None:
                    await self._set_single_select(token, project_id, item_id, status_field.id, status.id)
                else:
                    logger.warning(f"Project {project_id} has no Status field; skipping status")

            if priority is not None:
                priority_field = project.priority_field if project else None
                if priority_field is not None and priority_field.has_option(priority.id):
                    await self._set_single_select(token, project_id, item_id, priority_field.id, priority.id)
                else:
                    logger.warning(f"Priority option {priority.name} not in project {project_id}; skipping priority")
        except Exception as e:
            logger.error(f"Draft issue {item_id} was created but setting its fields failed")
            await self._refresh(token)
            return self._fail("create_task", ApiError.wrap(e), started, metadata)

        logger.info(f"Successfully created task: {title}")
        await self._refresh(token)
        self._succeed("create_task", started, metadata)
        return True

    async def update_task(
        self, item_id: str, title: str, body: Optional[str] = None, optimistic: bool = True
    ) -> bool:
        """Draft issueのタイトル・本文を更新

        Issue・PRに紐づくアイテムに対してはサーバー側で失敗する想定で、クライアント側では判定しない。
        """
        started = time.perf_counter()
        title = (title or "").strip()
        metadata = {"item_id": item_id, "title": title}

        if not title:
            return self._fail("update_task", InvalidInputError("Task title must not be empty"), started, metadata)

        try:
            token = self._require_token()
        except NoTokenError as e:
            return self._fail("update_task", e, started, metadata)

        if self.store.find_project_containing(item_id) is None:
            logger.warning(f"Could not find project containing item: {item_id}")
            return self._fail(
                "update_task",
                ResolutionError(f"Could not find project containing item {item_id}"),
                started,
                metadata,
            )

        variables: Dict[str, Any] = {"draftIssueId": item_id, "title": title}
        if body:
            variables["body"] = body

        previous, displayed = (None, None)
        if optimistic:
            previous, displayed = self._apply_draft_locally(item_id, title, body)

        try:
            data = await self.client.execute_query(UPDATE_DRAFT_ISSUE, token, variables)
            if not (data.get("updateProjectV2DraftIssue") or {}).get("draftIssue"):
                raise InvalidResponseError("No draft issue in update response")
        except Exception as e:
            self._revert(previous, displayed)
            return self._fail("update_task", ApiError.wrap(e), started, metadata)

        logger.info(f"Successfully updated task: {title}")
        await self._refresh(token)
        self._succeed("update_task", started, metadata)
        return True

    async def _set_single_select(
        self, token: str, project_id: str, item_id: str, field_id: str, option_id: str
    ):
        await self.client.execute_query(
            UPDATE_PROJECT_FIELD,
            token,
            {
                "projectId": project_id,
                "itemId": item_id,
                "fieldId": field_id,
                "optionId": option_id,
            },
        )

    def _apply_status_locally(
        self, item_id: str, status_field: ProjectField, option: FieldOption
    ) -> Tuple[Optional[Project], Optional[Project]]:
        """表示中のプロジェクトに新しいStatusを反映したコピーを表示

        Returns:
            (変更前のプロジェクト, 表示した楽観的プロジェクト)。表示中でなければ(None, None)
        """
        current = self.board.selected_project
        item = current.item(item_id) if current else None
        if item is None:
            return None, None

        value = FieldValue(
            name=option.name,
            optionId=option.id,
            field=FieldRef(id=status_field.id, name=status_field.name),
        )
        updated = current.replacing_item(item.with_field_value(value))
        self.board.show(updated)
        return current, updated

    def _apply_draft_locally(
        self, item_id: str, title: str, body: Optional[str]
    ) -> Tuple[Optional[Project], Optional[Project]]:
        current = self.board.selected_project
        item = current.item(item_id) if current else None
        if item is None or not isinstance(item.content, DraftIssue):
            return None, None

        content = item.content.model_copy(update={"title": title, "body": body or item.content.body})
        updated = current.replacing_item(item.with_content(content))
        self.board.show(updated)
        return current, updated

    def _revert(self, previous: Optional[Project], displayed: Optional[Project]):
        """楽観的更新を取り消す

        表示中のプロジェクトが楽観的更新のままなら変更前の参照に戻す。
        すでに新しいスナップショットに置き換わっていればそちらを優先する。
        """
        if previous is None:
            return
        if self.board.selected_project is displayed:
            logger.info("Reverting optimistic update")
            self.board.show(previous)
        else:
            logger.info("Displayed project changed since optimistic update; not reverting")

    async def _refresh(self, token: str):
        """全件再取得してボードを最新のスナップショットに合わせる"""
        try:
            projects = await self.store.fetch_all(token)
        except ApiError as e:
            logger.warning(f"Refresh after mutation failed: {e}")
            return
        self.board.sync_with(projects)

    def _succeed(self, operation: str, started: float, metadata: dict):
        self.last_error = None
        StructuredLogger.log_mutation(
            operation, True, (time.perf_counter() - started) * 1000, metadata
        )

    def _fail(self, operation: str, error: ApiError, started: float, metadata: dict) -> bool:
        self.last_error = error
        logger.error(f"{operation} failed: {error}")
        StructuredLogger.log_mutation(
            operation,
            False,
            (time.perf_counter() - started) * 1000,
            {**metadata, "error": str(error), "error_type": type(error).__name__},
        )
        return False
