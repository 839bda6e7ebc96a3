import asyncio
import time
from collections import deque


class RateLimiter:
    """シンプルなレート制限実装

    スライディングウィンドウ方式でGitHub APIへの送信ペースを管理します。
    上限に達した場合は待機するだけで、リクエストを失敗させたり再送したりはしません。
    """

    def __init__(self, max_requests: int, window_seconds: int):
        """RateLimiterの初期化

        Args:
            max_requests: ウィンドウ内での最大リクエスト数
            window_seconds: ウィンドウの長さ（秒）
        """
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self.requests = deque()
        self._lock = asyncio.Lock()

    def _evict(self, now: float):
        while self.requests and self.requests[0] < now - self.window_seconds:
            self.requests.popleft()

    async def acquire(self):
        """リクエストを実行する許可を取得

        レート制限に達している場合は、最も古いリクエストがウィンドウから外れるまで待機します。
        """
        while True:
            async with self._lock:
                now = time.monotonic()
                self._evict(now)

                if len(self.requests) < self.max_requests:
                    self.requests.append(now)
                    return

                sleep_time = (self.requests[0] + self.window_seconds) - now

            await asyncio.sleep(max(sleep_time, 0))

    def get_remaining(self) -> int:
        """残りのリクエスト可能数を取得

        Returns:
            int: 残りのリクエスト数
        """
        now = time.monotonic()
        valid_requests = [r for r in self.requests if r >= now - self.window_seconds]
        return max(0, self.max_requests - len(valid_requests))
