"""
ModpackLoader 服务层

包含业务逻辑服务：目录 API 客户端、清单读取、资源解析、交互提问。
"""

from modpackloader.services.catalog import CurseForgeClient
from modpackloader.services.manifest_reader import (
    ManifestReader,
    CurseForgeManifestReader,
    ModrinthManifestReader,
    open_archive,
    open_manifest,
    detect_format,
)
from modpackloader.services.prompter import Prompter, TerminalPrompter
from modpackloader.services.resolver import AssetResolver, ResolveState

__all__ = [
    "CurseForgeClient",
    "ManifestReader",
    "CurseForgeManifestReader",
    "ModrinthManifestReader",
    "open_archive",
    "open_manifest",
    "detect_format",
    "Prompter",
    "TerminalPrompter",
    "AssetResolver",
    "ResolveState",
]
