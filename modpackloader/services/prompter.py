"""
交互提问

解析器只决定"问什么、接受什么回答"，具体的输入输出由 Prompter 实现。
"""

import asyncio
import threading
from abc import ABC, abstractmethod
from typing import Sequence

import click

from modpackloader.console import Console
from modpackloader.download.slots import SlotPool


class Prompter(ABC):
    """交互提问接口"""

    @abstractmethod
    async def ask(
        self, question: str, options: Sequence[str] = (), invalid: bool = False
    ) -> str:
        """
        向用户提问并返回原始回答。

        Args:
            question: 问题
            options: 需要逐行列出的选项
            invalid: 上一次回答无效
        """

    @abstractmethod
    async def notify(self, message: str, fg=None) -> None:
        """显示一条提示信息"""


class TerminalPrompter(Prompter):
    """
    终端提问

    同一时间只显示一个问题。等待输入期间暂停进度绘制，但下载继续进行。
    """

    INVALID_MESSAGE = "输入无效，请重试。"

    def __init__(self, console: Console, pool: SlotPool):
        self.console = console
        self.pool = pool
        self._dialog = asyncio.Lock()

    async def ask(
        self, question: str, options: Sequence[str] = (), invalid: bool = False
    ) -> str:
        async with self._dialog:
            async with self.pool.lock:
                self.console.suspend()
                if invalid:
                    self.console.echo(self.INVALID_MESSAGE, fg="yellow")
                self.console.echo(question)
                for option in options:
                    self.console.echo(option)

            try:
                answer = await self._read_line()
            finally:
                async with self.pool.lock:
                    self.console.resume()
            return answer.strip()

    @staticmethod
    def _read_line() -> "asyncio.Future[str]":
        """
        在守护线程中读取一行输入

        取消时不等待读取线程结束，事件循环关闭也不会被阻塞在 input() 上。
        """
        loop = asyncio.get_running_loop()
        future = loop.create_future()

        def deliver(setter, value):
            if not future.done():
                setter(value)

        def read():
            try:
                answer = click.prompt(">", default="", show_default=False)
            except Exception as e:
                result = (future.set_exception, e)
            else:
                result = (future.set_result, answer)
            try:
                loop.call_soon_threadsafe(deliver, *result)
            except RuntimeError:
                # 事件循环已关闭，回答无人等待
                pass

        threading.Thread(target=read, name="prompt-reader", daemon=True).start()
        return future

    async def notify(self, message: str, fg=None) -> None:
        async with self.pool.lock:
            self.console.status(message, fg=fg)
