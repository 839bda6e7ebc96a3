import asyncio
from typing import Callable, List, Optional
from kanbanbar.github.client import GitHubClient
from kanbanbar.github.decoder import decode_project_summaries, decode_projects
from kanbanbar.github.errors import ApiError, NoTokenError
from kanbanbar.github.models import Project, ProjectSummary
from kanbanbar.github.queries import GET_BASIC_PROJECTS, GET_PROJECTS
from kanbanbar.utils.logger import get_logger

logger = get_logger(__name__)


class ProjectStore:
    """取得済みプロジェクトのスナップショットを保持

    fetch_allが唯一の更新経路で、常に前回のスナップショットを丸ごと置き換える。
    同時に複数のfetch_allが走った場合は後から完了したものが勝つ（順序保証なし）。
    """

    def __init__(self, client: GitHubClient):
        self.client = client
        self._projects: List[Project] = []
        self.basic_projects: List[ProjectSummary] = []
        self.error: Optional[ApiError] = None
        self.is_loading = False

    def current_projects(self) -> List[Project]:
        """現在のスナップショット"""
        return list(self._projects)

    def project(self, project_id: str) -> Optional[Project]:
        return next((p for p in self._projects if p.id == project_id), None)

    def find_project_containing(self, item_id: str) -> Optional[Project]:
        """指定アイテムを含む最初のプロジェクトを線形探索

        Args:
            item_id: プロジェクトアイテムのID

        Returns:
            Optional[Project]: 最初に見つかったプロジェクト。無ければNone
        """
        for project in self._projects:
            if project.contains_item(item_id):
                return project
        return None

    async def fetch_all(self, token: Optional[str]) -> List[Project]:
        """全プロジェクトを取得してスナップショットを置き換える

        失敗時はエラーを記録し、前回のスナップショットを残したまま例外を送出する。

        Args:
            token: Bearerトークン

        Returns:
            List[Project]: 新しいスナップショット

        Raises:
            ApiError: 取得またはデコードに失敗した場合
        """
        if not token:
            self.error = NoTokenError()
            raise self.error

        self.is_loading = True
        try:
            data = await self.client.execute_query(GET_PROJECTS, token)
            projects = decode_projects(data)
        except Exception as e:
            error = ApiError.wrap(e)
            self.error = error
            logger.error(f"Failed to fetch projects: {error}")
            await self._fetch_basic_projects(token)
            raise error
        finally:
            self.is_loading = False

        self._projects = projects
        self.error = None
        logger.info(f"Fetched {len(projects)} projects")
        return self.current_projects()

    async def _fetch_basic_projects(self, token: str):
        """フルクエリ失敗時に基本情報のみのクエリを試す"""
        try:
            data = await self.client.execute_query(GET_BASIC_PROJECTS, token)
        except ApiError as e:
            logger.error(f"Fallback query failed: {e}")
            return

        self.basic_projects = decode_project_summaries(data)
        logger.info(f"Fallback query returned {len(self.basic_projects)} projects")

    async def refresh_periodically(
        self,
        token_provider: Callable[[], Optional[str]],
        interval_seconds: float,
        on_refresh: Optional[Callable[[List[Project]], None]] = None,
    ):
        """キャンセルされるまで一定間隔でfetch_allを実行

        失敗はstore.errorに記録され、ループは継続する。

        Args:
            token_provider: 呼ばれるたびに現在のトークンを返す
            interval_seconds: 取得間隔（秒）
            on_refresh: 取得に成功するたびに新しいスナップショットで呼ばれる
        """
        while True:
            await asyncio.sleep(interval_seconds)
            try:
                projects = await self.fetch_all(token_provider())
            except ApiError as e:
                logger.warning(f"Periodic refresh failed: {e}")
                continue
            if on_refresh is not None:
                on_refresh(projects)
