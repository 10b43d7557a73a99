"""
可取消的延迟执行工具，用于输入防抖
"""

import asyncio
from typing import Any, Awaitable, Callable

from loguru import logger


class CancelToken:
    """延迟任务的取消句柄"""

    def __init__(self, task: asyncio.Task[None]) -> None:
        self._task = task

    def cancel(self) -> None:
        if not self._task.done():
            self._task.cancel()

    def is_cancelled(self) -> bool:
        return self._task.cancelled()

    def is_done(self) -> bool:
        return self._task.done()

    async def wait(self) -> None:
        """等待任务结束（包括被取消）"""
        try:
            await self._task
        except asyncio.CancelledError:
            if not self._task.cancelled():
                raise


def schedule_after(delay: float, action: Callable[[], Awaitable[Any]]) -> CancelToken:
    """在 delay 秒后执行 action

    Args:
        delay: 延迟秒数
        action: 无参协程函数

    Returns:
        CancelToken: 取消句柄
    """
    async def _delayed() -> None:
        await asyncio.sleep(delay)
        try:
            await action()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.exception(f"❌ 延迟任务执行失败：{e}")

    return CancelToken(asyncio.get_running_loop().create_task(_delayed()))


class Debouncer:
    """防抖器：重新调度会取消上一次尚未执行的任务"""

    def __init__(self, delay: float) -> None:
        self.delay = delay
        self._token: CancelToken | None = None

    @property
    def pending(self) -> bool:
        return self._token is not None and not self._token.is_done()

    def trigger(self, action: Callable[[], Awaitable[Any]]) -> CancelToken:
        self.cancel()
        self._token = schedule_after(self.delay, action)
        return self._token

    def cancel(self) -> None:
        if self._token is not None:
            self._token.cancel()
            self._token = None
