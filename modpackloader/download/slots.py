"""
下载槽位池

限制同时进行的下载数量。每个槽位同时也是终端上的一行进度显示。
"""

import asyncio
from dataclasses import dataclass
from typing import List

from loguru import logger


@dataclass
class DownloadSlot:
    """下载槽位"""

    index: int
    in_use: bool = False
    speed: float = 0.0


class SlotPool:
    """
    固定大小的槽位池

    slot 状态与终端输出共用同一把锁 ``lock``。
    """

    def __init__(self, size: int):
        if size <= 0:
            raise ValueError("槽位数量必须大于 0")
        self.size = size
        self.lock = asyncio.Lock()
        self._condition = asyncio.Condition(self.lock)
        self._slots: List[DownloadSlot] = [DownloadSlot(i) for i in range(size)]
        self.peak_in_use = 0

    @property
    def slots(self) -> List[DownloadSlot]:
        return list(self._slots)

    @property
    def in_use(self) -> int:
        return sum(1 for slot in self._slots if slot.in_use)

    def _first_free(self):
        for slot in self._slots:
            if not slot.in_use:
                return slot
        return None

    async def acquire(self) -> DownloadSlot:
        """等待空闲槽位并标记为占用"""
        async with self._condition:
            await self._condition.wait_for(lambda: self._first_free() is not None)
            slot = self._first_free()
            slot.in_use = True
            slot.speed = 0.0
            self.peak_in_use = max(self.peak_in_use, self.in_use)
            logger.debug(f"[槽位] 占用槽位 {slot.index} ({self.in_use}/{self.size})")
            return slot

    async def release(self, slot: DownloadSlot):
        """释放槽位"""
        async with self._condition:
            slot.in_use = False
            logger.debug(f"[槽位] 释放槽位 {slot.index}")
            self._condition.notify_all()

    async def wait_all_released(self):
        """等待所有槽位释放"""
        async with self._condition:
            await self._condition.wait_for(lambda: self.in_use == 0)
