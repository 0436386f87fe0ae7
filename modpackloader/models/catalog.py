"""
目录 API 数据模型

定义 CurseForge 目录返回的模组信息、文件信息以及备选版本。
"""

import re
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Dict, List, Optional

VERSION_PATTERN = re.compile(r"^[\d]+.[\d]+.[\d]+")


class ModLoaderType(IntEnum):
    """CurseForge 模组加载器类型"""

    ANY = 0
    FORGE = 1
    CAULDRON = 2
    LITELOADER = 3
    FABRIC = 4
    QUILT = 5
    NEOFORGE = 6

    @classmethod
    def from_name(cls, name: str) -> Optional["ModLoaderType"]:
        """按名称匹配加载器（大小写不敏感），未找到返回 None"""
        for loader in cls:
            if loader.name.lower() == name.lower():
                return loader
        return None


def parse_compatibility(
    game_versions: List[str],
) -> tuple[Optional[ModLoaderType], Optional[str]]:
    """
    从 gameVersions 标签中提取加载器与游戏版本

    两者都取最后一个匹配项。
    """
    loader = None
    version = None
    for tag in game_versions:
        matched = ModLoaderType.from_name(tag)
        if matched is not None:
            loader = matched
        elif VERSION_PATTERN.match(tag):
            version = tag
    return loader, version


@dataclass
class ModInfo:
    """
    模组项目信息。
    """

    id: int
    name: str
    class_id: int
    website_url: str
    slug: str = ""

    @classmethod
    def from_curseforge(cls, data: dict) -> "ModInfo":
        links = data.get("links") or {}
        return cls(
            id=data["id"],
            name=data.get("name", str(data["id"])),
            class_id=data.get("classId", 0),
            website_url=(links.get("websiteUrl") or "").rstrip("/"),
            slug=data.get("slug", ""),
        )


@dataclass
class ModFile:
    """
    模组文件信息。
    """

    id: int
    mod_id: int
    file_name: str
    download_url: Optional[str]
    game_versions: List[str] = field(default_factory=list)
    display_name: str = ""
    file_length: int = 0
    hashes: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_curseforge(cls, data: dict) -> "ModFile":
        """
        将 CurseForge API 返回的文件信息转换为 ModFile 对象。

        hashes 中 algo 1 为 sha1，2 为 md5。
        """
        algos = {1: "sha1", 2: "md5"}
        hashes = {
            algos[item["algo"]]: item["value"]
            for item in data.get("hashes", [])
            if item.get("algo") in algos
        }
        return cls(
            id=data["id"],
            mod_id=data.get("modId", 0),
            file_name=data["fileName"],
            download_url=data.get("downloadUrl") or None,
            game_versions=list(data.get("gameVersions", [])),
            display_name=data.get("displayName", ""),
            file_length=data.get("fileLength", 0),
            hashes=hashes,
        )

    def compatibility(self) -> tuple[Optional[ModLoaderType], Optional[str]]:
        return parse_compatibility(self.game_versions)


@dataclass
class ModVariant:
    """同一资源的备选文件"""

    url: str
    file_name: str
    file_id: int
    game_versions: List[str] = field(default_factory=list)
    loader: Optional[ModLoaderType] = None

    @classmethod
    def from_file(cls, mod_file: ModFile) -> Optional["ModVariant"]:
        """没有下载地址的文件无法作为备选，返回 None"""
        if not mod_file.download_url:
            return None
        loader, _ = mod_file.compatibility()
        return cls(
            url=mod_file.download_url,
            file_name=mod_file.file_name,
            file_id=mod_file.id,
            game_versions=list(mod_file.game_versions),
            loader=loader,
        )
