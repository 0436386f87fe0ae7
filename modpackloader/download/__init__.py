"""
ModpackLoader 下载层

包含槽位调度、下载执行与进度显示。
"""

from modpackloader.download.slots import DownloadSlot, SlotPool
from modpackloader.download.progress import ProgressRenderer, ProgressSample
from modpackloader.download.executor import DownloadExecutor, TEMP_SUFFIX

__all__ = [
    "DownloadSlot",
    "SlotPool",
    "ProgressRenderer",
    "ProgressSample",
    "DownloadExecutor",
    "TEMP_SUFFIX",
]
