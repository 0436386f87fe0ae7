"""
ModpackLoader 数据模型包

包含配置模型、资源模型、目录 API 模型和运行报告。
"""

from modpackloader.models.config import LoaderConfig, load_config_file
from modpackloader.models.asset import (
    Category,
    CatalogRef,
    AssetDescriptor,
    AssetStatus,
    AssetOutcome,
    UnresolvedAsset,
)
from modpackloader.models.catalog import (
    ModLoaderType,
    ModInfo,
    ModFile,
    ModVariant,
)
from modpackloader.models.manifest import ModpackFormat, ModpackInfo
from modpackloader.models.report import DownloadStats, RunReport

__all__ = [
    # 配置模型
    "LoaderConfig",
    "load_config_file",
    # 资源模型
    "Category",
    "CatalogRef",
    "AssetDescriptor",
    "AssetStatus",
    "AssetOutcome",
    "UnresolvedAsset",
    # 目录 API 模型
    "ModLoaderType",
    "ModInfo",
    "ModFile",
    "ModVariant",
    # 清单模型
    "ModpackFormat",
    "ModpackInfo",
    # 报告
    "DownloadStats",
    "RunReport",
]
