"""クライアントの実行コンテキスト（キャンセル通知と完了待ち合わせ）"""

from __future__ import annotations

import asyncio
from typing import Any, Coroutine

import structlog

from .exceptions import ExperimentError, ExperimentErrorCodes

logger = structlog.stdlib.get_logger(__name__)


class ExecutionContext:
    """バックグラウンド処理の登録先。

    go() で登録したタスクは terminate_and_wait() で全て完了するまで待ち合わせる。
    登録したコルーチンは wait_cancelled() などでキャンセル通知を監視すること。
    """

    def __init__(self) -> None:
        self._cancelled = asyncio.Event()
        self._tasks: set[asyncio.Task[Any]] = set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    async def wait_cancelled(self) -> None:
        """キャンセルが通知されるまで待つ。"""
        await self._cancelled.wait()

    def go(self, coro: Coroutine[Any, Any, Any]) -> asyncio.Task[Any]:
        """バックグラウンドタスクを登録して開始する。

        Raises:
            ExperimentError: 既にキャンセル済みの場合
        """
        if self.cancelled:
            coro.close()
            raise ExperimentError(
                code=ExperimentErrorCodes.CLIENT_CLOSED,
                message="execution context is already terminated",
            )
        task = asyncio.create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def terminate_and_wait(self) -> None:
        """キャンセルを通知し、登録済みタスクの完了を待つ。複数回呼んでもよい。"""
        self._cancelled.set()
        while self._tasks:
            tasks = list(self._tasks)
            results = await asyncio.gather(*tasks, return_exceptions=True)
            for result in results:
                if isinstance(result, BaseException) and not isinstance(
                    result, asyncio.CancelledError
                ):
                    logger.error("background task failed", error=str(result))
            # gather 完了時点で done callback が走っていない場合に備えて除去する
            self._tasks.difference_update(tasks)
