"""
整合包清单读取

支持 CurseForge (manifest.json) 与 Modrinth (.mrpack / modrinth.index.json) 两种格式，
按清单顺序逐个产出 AssetDescriptor。
"""

import json
import os
import posixpath
import zipfile
from abc import ABC, abstractmethod
from typing import Any, AsyncIterator, Dict, List, Optional

from loguru import logger

from modpackloader.exceptions import CatalogError, ConfigError, ManifestError
from modpackloader.models import (
    AssetDescriptor,
    CatalogRef,
    Category,
    LoaderConfig,
    ModpackFormat,
    ModpackInfo,
)
from modpackloader.services.catalog import CurseForgeClient

CURSEFORGE_MANIFEST = "manifest.json"
MODRINTH_MANIFEST = "modrinth.index.json"
MRPACK_SUFFIX = ".mrpack"


def detect_format(input_path: str) -> ModpackFormat:
    """按扩展名判断清单格式"""
    if os.path.splitext(input_path)[1].lower() == MRPACK_SUFFIX:
        return ModpackFormat.MODRINTH
    return ModpackFormat.CURSEFORGE


def open_archive(input_path: str) -> zipfile.ZipFile:
    """打开整合包压缩文件，失败时抛出 ManifestError"""
    try:
        return zipfile.ZipFile(input_path)
    except FileNotFoundError:
        raise ManifestError(
            f"整合包文件不存在: {input_path}", context={"path": input_path}
        )
    except (zipfile.BadZipFile, OSError) as e:
        raise ManifestError(
            f"无法打开整合包: {e}", context={"path": input_path}
        ) from e


def read_json(archive: zipfile.ZipFile, name: str) -> Dict[str, Any]:
    """读取压缩包内的 JSON 清单"""
    try:
        content = archive.read(name)
    except KeyError:
        raise ManifestError("Could not find modpack manifest!", context={"entry": name})

    try:
        data = json.loads(content.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ManifestError(f"Could not parse {name}: {e}", context={"entry": name})

    if not isinstance(data, dict):
        raise ManifestError(f"Could not parse {name}", context={"entry": name})
    return data


class ManifestReader(ABC):
    """清单读取器基类"""

    def __init__(self, archive: zipfile.ZipFile, config: LoaderConfig):
        self.archive = archive
        self.config = config
        self.errors: List[str] = []
        self.info = self._parse()

    @abstractmethod
    def _parse(self) -> ModpackInfo:
        """解析清单元数据"""

    @abstractmethod
    def assets(self) -> AsyncIterator[AssetDescriptor]:
        """按清单顺序产出资源"""


class CurseForgeManifestReader(ManifestReader):
    """CurseForge 清单读取器，资源信息通过目录 API 补全"""

    def __init__(
        self,
        archive: zipfile.ZipFile,
        config: LoaderConfig,
        catalog: CurseForgeClient,
    ):
        self.catalog = catalog
        super().__init__(archive, config)

    def _parse(self) -> ModpackInfo:
        self.manifest = read_json(self.archive, CURSEFORGE_MANIFEST)
        files = self.manifest.get("files")
        if not isinstance(files, list):
            raise ManifestError("Could not parse manifest.json: files 缺失")
        self.files = files

        minecraft = self.manifest.get("minecraft") or {}
        lines = []
        for loader in minecraft.get("modLoaders") or []:
            primary = " *" if loader.get("primary") else ""
            lines.append(f"Mod Loader: {loader.get('id')}{primary}")
        lines.append(f"Minecraft Version: {minecraft.get('version', 'unknown')}")

        return ModpackInfo(
            name=self.manifest.get("name", ""),
            version=self.manifest.get("version", ""),
            format=ModpackFormat.CURSEFORGE,
            override_prefixes=[self.manifest.get("overrides") or "overrides"],
            version_lines=lines,
            asset_count=len(files),
        )

    async def assets(self) -> AsyncIterator[AssetDescriptor]:
        for entry in self.files:
            try:
                project_id = int(entry["projectID"])
                file_id = int(entry["fileID"])
            except (KeyError, TypeError, ValueError):
                logger.error(f"[错误] 忽略无效的清单条目: {entry}")
                self.errors.append(str(entry))
                continue

            try:
                mod = await self.catalog.get_mod(project_id)
                category = Category.from_class_id(mod.class_id)
                mod_file = await self.catalog.get_mod_file(project_id, file_id)
            except CatalogError as e:
                logger.error(f"[错误] Data loading error ({project_id}): {e}")
                self.errors.append(f"{project_id}:{file_id}")
                continue

            yield AssetDescriptor(
                id=f"{project_id}:{file_id}",
                tag=category.tag,
                name=mod.name,
                file_name=mod_file.file_name,
                required=bool(entry.get("required", True)),
                relative_path=f"{category.directory}/{mod_file.file_name}",
                candidate_urls=(
                    (mod_file.download_url,) if mod_file.download_url else ()
                ),
                hashes=dict(mod_file.hashes),
                category=category,
                catalog=CatalogRef(
                    project_id=project_id,
                    file_id=mod_file.id,
                    website_url=mod.website_url,
                    game_versions=tuple(mod_file.game_versions),
                ),
            )


class ModrinthManifestReader(ManifestReader):
    """Modrinth 清单读取器，资源直接给出下载地址"""

    def _parse(self) -> ModpackInfo:
        self.manifest = read_json(self.archive, MODRINTH_MANIFEST)
        files = self.manifest.get("files")
        if not isinstance(files, list):
            raise ManifestError("Could not parse modrinth.index.json: files 缺失")
        self.files = files

        prefixes = ["overrides"]
        if self.config.include_client:
            prefixes.append("client-overrides")
        if self.config.include_server:
            prefixes.append("server-overrides")

        dependencies = self.manifest.get("dependencies") or {}
        return ModpackInfo(
            name=self.manifest.get("name", ""),
            version=self.manifest.get("versionId", ""),
            format=ModpackFormat.MODRINTH,
            override_prefixes=prefixes,
            version_lines=[f"{key}: {value}" for key, value in dependencies.items()],
            asset_count=len(files),
        )

    @staticmethod
    def _is_required(environment: Dict[str, str]) -> bool:
        if not environment:
            return True
        return all(environment.get(side) == "required" for side in ("client", "server"))

    async def assets(self) -> AsyncIterator[AssetDescriptor]:
        for entry in self.files:
            path = entry.get("path") or ""
            normalized = posixpath.normpath(path)
            if (
                "/" not in path
                or normalized.startswith("..")
                or posixpath.isabs(normalized)
            ):
                logger.error(f"[错误] 忽略无效的文件路径: '{path}'")
                self.errors.append(path)
                continue

            directory, _, rest = normalized.partition("/")
            category = Category.from_directory(directory)
            if category is not None:
                tag = category.tag
            else:
                tag = directory[:-1] if directory.endswith("s") else directory

            environment = dict(entry.get("env") or {})
            yield AssetDescriptor(
                id=normalized,
                tag=tag,
                name=posixpath.basename(rest),
                file_name=posixpath.basename(rest),
                required=self._is_required(environment),
                relative_path=normalized,
                candidate_urls=tuple(entry.get("downloads") or ()),
                environment=environment,
                hashes=dict(entry.get("hashes") or {}),
                category=category,
            )


def open_manifest(
    archive: zipfile.ZipFile,
    input_path: str,
    config: LoaderConfig,
    catalog: Optional[CurseForgeClient] = None,
) -> ManifestReader:
    """根据整合包格式创建对应的清单读取器"""
    if detect_format(input_path) is ModpackFormat.MODRINTH:
        return ModrinthManifestReader(archive, config)
    if catalog is None:
        raise ConfigError("CurseForge 整合包需要 API Key")
    return CurseForgeManifestReader(archive, config, catalog)
