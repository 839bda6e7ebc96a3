import argparse
import asyncio
from kanbanbar.auth.secret_store import KeyringSecretStore
from kanbanbar.auth.service import AuthenticationService
from kanbanbar.board.engine import MutationEngine
from kanbanbar.board.projection import BoardProjection
from kanbanbar.board.store import ProjectStore
from kanbanbar.config import settings
from kanbanbar.copilot.copilot import TaskCopilot
from kanbanbar.github.client import GitHubClient
from kanbanbar.github.errors import ApiError
from kanbanbar.utils.logger import get_logger

logger = get_logger(__name__)


async def login(auth: AuthenticationService):
    """認可URLを表示し、貼り付けられたコールバックURLでサインインを完了"""
    print(f"Open this URL in your browser:\n{auth.authorization_url()}")
    callback_url = input("Paste the callback URL: ").strip()

    if await auth.complete_authorization(callback_url):
        print(f"Signed in as {auth.current_user.login}")
    else:
        print("Sign-in failed. See the log for details.")


async def watch(store: ProjectStore, board: BoardProjection, auth: AuthenticationService):
    """定期的に再取得し、取得のたびにボードを更新して表示"""
    logger.info(f"Refreshing every {settings.REFRESH_INTERVAL_SECONDS} seconds")

    def show_board(projects):
        board.sync_with(projects)
        for column, items in board.board().items():
            logger.info(f"  {column}: {len(items)} items")

    await store.refresh_periodically(
        auth.access_token, settings.REFRESH_INTERVAL_SECONDS, on_refresh=show_board
    )


async def main(args: argparse.Namespace):
    """メインエントリーポイント"""
    secret_store = KeyringSecretStore(settings.KEYCHAIN_SERVICE)
    client = GitHubClient(settings)
    auth = AuthenticationService(secret_store, client, settings)

    if args.command == "login":
        await login(auth)
        return

    # 初回起動時は環境変数のトークンをキーチェーンに保存
    if settings.GITHUB_TOKEN and not secret_store.load_access_token():
        secret_store.save_access_token(settings.GITHUB_TOKEN)

    if not await auth.restore_session():
        logger.error("Not signed in. Run 'python main.py login' or set GITHUB_TOKEN.")
        return

    store = ProjectStore(client)
    board = BoardProjection()
    engine = MutationEngine(client, store, board, auth.access_token)
    copilot = TaskCopilot(store, engine, board)

    try:
        projects = await store.fetch_all(auth.access_token())
    except ApiError as e:
        logger.error(f"Failed to load projects: {e}")
        for summary in store.basic_projects:
            logger.info(f"Project #{summary.number}: {summary.title} ({summary.url})")
        return

    board.sync_with(projects)
    if board.selected_project is None:
        logger.info("No projects found")
    else:
        logger.info(f"Project: {board.selected_project.title}")
        for column, items in board.board().items():
            logger.info(f"  {column}: {len(items)} items")

    if args.prompt:
        print(await copilot.process_message(" ".join(args.prompt)))

    if args.watch:
        await watch(store, board, auth)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="GitHub Projects kanban board")
    subparsers = parser.add_subparsers(dest="command")
    subparsers.add_parser("login", help="Sign in with GitHub OAuth")

    run = subparsers.add_parser("run", help="Load the board and optionally run a copilot prompt")
    run.add_argument("--watch", action="store_true", help="Keep refreshing the board until interrupted")
    run.add_argument("prompt", nargs="*", help="Copilot prompt, e.g. 'show tasks in progress'")

    parser.set_defaults(command="run", prompt=[], watch=False)
    return parser.parse_args()


if __name__ == "__main__":
    try:
        asyncio.run(main(parse_args()))
    except KeyboardInterrupt:
        logger.info("Application stopped")
