"""
下载进度显示

每个槽位一行：标签 + 名称、进度条、百分比、平滑后的速度以及已下载/总大小。
"""

from dataclasses import dataclass
from typing import List, Sequence, Tuple

import click

from modpackloader.console import Console
from modpackloader.download.slots import DownloadSlot, SlotPool

SPEED_DECAY = 0.99

HEADER = "Loading {0} {1} "
FOOTER = " {0:.2f} %  {1:.3f} {2}  {3:.3f}/{4:.3f} {5}"
HEADER_ZONE = 70
FOOTER_ZONE = 35
MARGIN = 10
BAR_CHAR = "■"

SPEED_UNITS: List[str] = ["bit/s", "Kbit/s", "Mbit/s", "Gbit/s", "Tbit/s"]
SIZE_UNITS: List[str] = ["b", "Kb", "Mb", "Gb", "Tb"]


@dataclass(frozen=True)
class ProgressSample:
    """一次进度采样，speed 单位为 bit/s"""

    loaded_bytes: int
    total_bytes: int
    speed: float

    @property
    def percentage(self) -> float:
        if self.total_bytes <= 0:
            return 0.0
        return min(1.0, self.loaded_bytes / self.total_bytes)


def smooth(current: float, sample_speed: float) -> float:
    """指数滑动平均，每个采样调用一次"""
    return SPEED_DECAY * current + (1 - SPEED_DECAY) * max(0.0, sample_speed)


def scale(value: float, units: Sequence[str]) -> Tuple[float, int]:
    """按 1024 逐级缩放，最多升级 len(units) - 1 次"""
    index = 0
    while value > 1024:
        value /= 1024
        index += 1
        if index == len(units) - 1:
            break
    return value, index


def format_line(tag: str, name: str, sample: ProgressSample, speed: float, width: int) -> str:
    """生成一行进度文本"""
    speed_value, speed_index = scale(speed, SPEED_UNITS)

    total, size_index = scale(float(sample.total_bytes), SIZE_UNITS)
    loaded = float(sample.loaded_bytes) / (1024 ** size_index)

    header = HEADER.format(tag, name)
    footer = FOOTER.format(
        sample.percentage * 100,
        speed_value,
        SPEED_UNITS[speed_index],
        loaded,
        total,
        SIZE_UNITS[size_index],
    )

    length = max(
        0,
        width - max(HEADER_ZONE, len(header)) - max(FOOTER_ZONE, len(footer)) - MARGIN,
    )
    filled = min(length, int(sample.percentage * length))

    bar = " " * max(1, HEADER_ZONE + 1 - len(header)) + "|"
    bar += BAR_CHAR * filled
    bar += " " * (length - filled) + "|"
    bar += " " * max(1, FOOTER_ZONE + 1 - len(footer))

    return f"{header}{click.style(bar, fg='green')}{footer}"


class ProgressRenderer:
    """槽位进度渲染器"""

    def __init__(self, console: Console, pool: SlotPool):
        self.console = console
        self.pool = pool

    def update(self, slot: DownloadSlot, tag: str, name: str, sample: ProgressSample):
        """更新平滑速度并重绘该槽位的行，调用方需持有 pool.lock"""
        slot.speed = smooth(slot.speed, sample.speed)
        line = format_line(tag, name, sample, slot.speed, self.console.width)
        self.console.write_row(slot.index, line)

    async def report(self, slot: DownloadSlot, tag: str, name: str, sample: ProgressSample):
        async with self.pool.lock:
            self.update(slot, tag, name, sample)

    async def clear(self, slot: DownloadSlot):
        async with self.pool.lock:
            self.console.clear_row(slot.index)

    async def status(self, message: str, fg=None):
        async with self.pool.lock:
            self.console.status(message, fg=fg)
