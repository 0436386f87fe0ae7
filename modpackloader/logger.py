"""
日志模块

加载过程中日志写到 Console 的状态行，不打乱进度行；其余时间写到标准输出。
"""

import os
import sys
from contextlib import contextmanager
from typing import Iterator, Optional

from loguru import logger

from modpackloader.console import Console

LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {message}"
DEBUG_ENV = "MODPACKLOADER_DEBUG"


def resolve_level(level: Optional[str] = None) -> str:
    """未指定级别时由环境变量 MODPACKLOADER_DEBUG 决定"""
    if level:
        return level.upper()
    return "DEBUG" if os.environ.get(DEBUG_ENV, "0") == "1" else "INFO"


def setup_logger(level: Optional[str] = None, console: Optional[Console] = None) -> None:
    """
    设置日志记录器

    Args:
        level: 日志级别 (DEBUG, INFO, WARNING, ERROR)
        console: 给定时日志写到其状态行，否则写到标准输出
    """
    level = resolve_level(level)
    logger.remove()

    if console is not None:
        # 状态行由事件循环线程独占，必须同步写入
        logger.add(
            console.log_sink,
            format=LOG_FORMAT,
            enqueue=False,
            level=level,
            colorize=False,
        )
    else:
        logger.add(
            sys.stdout,
            format=LOG_FORMAT,
            enqueue=False,
            level=level,
            colorize=True,
            backtrace=(level == "DEBUG"),
            diagnose=(level == "DEBUG"),
        )

    if level == "DEBUG":
        logger.debug("DEBUG 模式已启用")


@contextmanager
def console_logging(console: Console, level: Optional[str] = None) -> Iterator[Console]:
    """在 with 块内把日志重定向到 console，退出时恢复为标准输出"""
    setup_logger(level, console=console)
    try:
        yield console
    finally:
        setup_logger(level)
