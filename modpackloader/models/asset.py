"""
资源数据模型

定义清单中每个资源的描述、分类以及解析结果。
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional, Tuple

from modpackloader.exceptions import UnknownCategoryError


class Category(Enum):
    """
    资源分类

    值为 (目录 class id, 输出目录, 显示标签)。
    """

    MOD = (6, "mods", "mod")
    RESOURCE_PACK = (12, "resourcepacks", "resourcepack")
    MODPACK = (4471, "modpacks", "modpack")
    DATAPACK = (6945, "datapacks", "datapack")
    WORLD = (17, "saves", "world")
    SHADER_PACK = (6552, "shaderpacks", "shaderpack")

    def __init__(self, class_id: int, directory: str, tag: str):
        self.class_id = class_id
        self.directory = directory
        self.tag = tag

    @classmethod
    def from_class_id(cls, class_id: int) -> "Category":
        """通过目录 class id 获取分类，未知 id 抛出 UnknownCategoryError"""
        for category in cls:
            if category.class_id == class_id:
                return category
        raise UnknownCategoryError(
            f"未知的资源分类: {class_id}", context={"class_id": class_id}
        )

    @classmethod
    def from_directory(cls, directory: str) -> Optional["Category"]:
        for category in cls:
            if category.directory == directory:
                return category
        return None


@dataclass(frozen=True)
class CatalogRef:
    """资源在目录服务中的引用信息"""

    project_id: int
    file_id: int
    website_url: str
    game_versions: Tuple[str, ...] = ()

    @property
    def manual_url(self) -> str:
        return f"{self.website_url}/files/{self.file_id}"


@dataclass(frozen=True)
class AssetDescriptor:
    """
    清单中的单个资源。

    由清单读取器生成，之后不再修改。
    """

    id: str
    tag: str
    name: str
    file_name: str
    required: bool
    relative_path: str
    candidate_urls: Tuple[str, ...] = ()
    environment: Dict[str, str] = field(default_factory=dict, hash=False)
    hashes: Dict[str, str] = field(default_factory=dict, hash=False)
    category: Optional[Category] = None
    catalog: Optional[CatalogRef] = None

    @property
    def directory(self) -> str:
        return self.relative_path.rsplit("/", 1)[0] if "/" in self.relative_path else ""

    @property
    def label(self) -> str:
        return f"{self.tag} {self.name}"

    @property
    def manual_url(self) -> str:
        """自动解析失败时提供给用户的手动下载地址"""
        if self.catalog is not None:
            return self.catalog.manual_url
        return self.candidate_urls[0] if self.candidate_urls else self.relative_path

    def requires_side(self, side: str) -> bool:
        return self.environment.get(side) == "required"


class AssetStatus(Enum):
    """资源处理结果"""

    DOWNLOADED = "downloaded"
    SKIPPED = "skipped"
    DECLINED = "declined"
    UNRESOLVED = "unresolved"
    ABANDONED = "abandoned"


@dataclass
class AssetOutcome:
    """单个资源的处理结果"""

    asset: AssetDescriptor
    status: AssetStatus
    path: Optional[str] = None
    url: Optional[str] = None
    bytes_downloaded: int = 0


@dataclass(frozen=True)
class UnresolvedAsset:
    """需要用户手动处理的资源"""

    asset_id: str
    manual_url: str
