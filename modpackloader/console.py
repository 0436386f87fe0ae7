"""
终端输出

前 N 行保留给下载槽位的进度条，第 N 行为状态行，用于显示跳过/完成/错误信息以及日志。
调用方需持有槽位锁后再写入，保证光标移动与写入不会交错。
"""

import shutil
from typing import List, Optional, TextIO

import click

CSI = "\x1b["


class Console:
    """带固定进度行区域的终端"""

    def __init__(
        self,
        rows: int,
        stream: Optional[TextIO] = None,
        width: Optional[int] = None,
    ):
        self.rows = rows
        self.stream = stream or click.get_text_stream("stdout")
        self._width = width
        self.suspended = False
        self.finished = False
        self._pending: List[str] = []

    @property
    def width(self) -> int:
        if self._width is not None:
            return self._width
        return shutil.get_terminal_size((120, 24)).columns

    @property
    def status_row(self) -> int:
        return self.rows

    def _write(self, text: str):
        self.stream.write(text)
        self.stream.flush()

    def _move(self, row: int) -> str:
        return f"{CSI}{row + 1};1H"

    def prepare(self):
        """清屏并预留进度行与状态行"""
        self._write(f"{CSI}2J{CSI}H" + "\n" * (self.rows + 1))

    def write_row(self, row: int, text: str):
        if self.suspended:
            return
        self._write(f"{self._move(row)}{text}{CSI}K\r")

    def clear_row(self, row: int):
        self.write_row(row, "")

    def status(self, message: str, fg: Optional[str] = None):
        """在状态行显示一条信息"""
        if fg:
            message = click.style(message, fg=fg)
        self.write_row(self.status_row, message)

    def log_sink(self, message):
        """
        loguru 的 sink，把日志写到状态行

        提问期间先缓存，恢复后再写出，避免混入用户输入行。
        """
        text = str(message).rstrip("\n")
        if self.finished:
            click.echo(text, file=self.stream)
        elif self.suspended:
            self._pending.append(text)
        else:
            self.write_row(self.status_row, text[: self.width - 1])

    def suspend(self):
        """暂停进度绘制并清屏，用于交互提问"""
        self.suspended = True
        self._write(f"{CSI}2J{CSI}H")

    def resume(self):
        self.suspended = False
        self.prepare()
        pending, self._pending = self._pending, []
        for text in pending:
            self.write_row(self.status_row, text[: self.width - 1])

    def echo(self, message: str = "", fg: Optional[str] = None):
        """普通逐行输出"""
        if fg:
            message = click.style(message, fg=fg)
        click.echo(message, file=self.stream)

    def finish(self):
        """结束进度区域，之后只做普通逐行输出"""
        self.suspended = True
        self.finished = True
        self._write(f"{CSI}2J{CSI}H")
        pending, self._pending = self._pending, []
        for text in pending:
            click.echo(text, file=self.stream)
