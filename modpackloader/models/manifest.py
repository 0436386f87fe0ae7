"""
整合包清单模型
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List


class ModpackFormat(Enum):
    """整合包清单格式"""

    CURSEFORGE = "curseforge"
    MODRINTH = "modrinth"


@dataclass
class ModpackInfo:
    """整合包元数据"""

    name: str
    version: str
    format: ModpackFormat
    override_prefixes: List[str] = field(default_factory=list)
    version_lines: List[str] = field(default_factory=list)
    asset_count: int = 0
