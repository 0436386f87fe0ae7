"""
运行统计与报告
"""

from dataclasses import dataclass, field
from typing import List

from modpackloader.models.asset import AssetOutcome, AssetStatus, UnresolvedAsset


@dataclass
class DownloadStats:
    """下载统计"""

    total: int = 0
    completed: int = 0
    failed: int = 0
    skipped: int = 0
    declined: int = 0
    bytes_downloaded: int = 0

    def record(self, outcome: AssetOutcome):
        if outcome.status == AssetStatus.DOWNLOADED:
            self.completed += 1
            self.bytes_downloaded += outcome.bytes_downloaded
        elif outcome.status == AssetStatus.SKIPPED:
            self.skipped += 1
        elif outcome.status == AssetStatus.DECLINED:
            self.declined += 1
        else:
            self.failed += 1


@dataclass
class RunReport:
    """一次完整运行的结果"""

    stats: DownloadStats = field(default_factory=DownloadStats)
    outcomes: List[AssetOutcome] = field(default_factory=list)
    unresolved: List[UnresolvedAsset] = field(default_factory=list)
    overrides: List[str] = field(default_factory=list)
    version_lines: List[str] = field(default_factory=list)

    @property
    def manual_urls(self) -> List[str]:
        return [item.manual_url for item in self.unresolved]
