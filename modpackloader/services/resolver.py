"""
资源解析服务

对每个资源：决定是否加载，选择下载地址，失败时提供其他版本，最终无法解决的资源记录手动下载地址。
"""

import os
from enum import Enum, auto
from functools import partial
from typing import List, Optional

from loguru import logger

from modpackloader.download import DownloadExecutor, DownloadSlot, ProgressRenderer
from modpackloader.exceptions import CatalogError, DownloadError
from modpackloader.models import (
    AssetDescriptor,
    AssetOutcome,
    AssetStatus,
    LoaderConfig,
    ModVariant,
    UnresolvedAsset,
)
from modpackloader.models.catalog import parse_compatibility
from modpackloader.services.catalog import CurseForgeClient
from modpackloader.services.prompter import Prompter

YES = "y"
NO = "n"


class ResolveState(Enum):
    """资源解析状态"""

    RESOLVING = auto()
    DOWNLOADED = auto()
    FAILED = auto()
    ASK_VARIANT = auto()
    FETCH_VARIANTS = auto()
    NO_VARIANTS = auto()
    PICK_VARIANT = auto()
    GIVE_UP = auto()


class AssetResolver:
    """资源解析器"""

    def __init__(
        self,
        config: LoaderConfig,
        executor: DownloadExecutor,
        renderer: ProgressRenderer,
        prompter: Prompter,
        unresolved: List[UnresolvedAsset],
        catalog: Optional[CurseForgeClient] = None,
    ):
        self.config = config
        self.executor = executor
        self.renderer = renderer
        self.prompter = prompter
        self.unresolved = unresolved
        self.catalog = catalog

    async def _ask_yes_no(self, question: str) -> bool:
        invalid = False
        while True:
            answer = (await self.prompter.ask(question, invalid=invalid)).lower()
            if answer == YES:
                return True
            if answer == NO:
                return False
            invalid = True

    async def _ask_index(self, question: str, options: List[str]) -> int:
        lines = [f"{i} - {option}" for i, option in enumerate(options)]
        invalid = False
        while True:
            answer = await self.prompter.ask(question, lines, invalid=invalid)
            try:
                index = int(answer)
            except ValueError:
                index = -1
            if 0 <= index < len(options):
                return index
            invalid = True

    async def decide(self, asset: AssetDescriptor) -> bool:
        """
        决定是否加载资源

        必需资源直接通过；匹配 client/server 开关的资源总是加载；
        否则在跳过模式下自动跳过，交互模式下询问用户。
        """
        if asset.required:
            return True

        client = self.config.include_client and asset.requires_side("client")
        server = self.config.include_server and asset.requires_side("server")
        if client or server:
            logger.debug(f"[加载] {asset.label} 匹配 client/server 开关")
            return True

        if self.config.skip_optional:
            await self.prompter.notify(f"Skipping {asset.label}...", fg="blue")
            return False

        sides = "".join(
            f" {side}" for side in ("client", "server") if asset.requires_side(side)
        )
        return await self._ask_yes_no(f"Load optional{sides} {asset.label}? (y/n)")

    def _path_for(self, asset: AssetDescriptor, file_name: str) -> str:
        return os.path.join(self.config.output, asset.directory, file_name)

    def _record(self, asset: AssetDescriptor, manual_url: str):
        self.unresolved.append(UnresolvedAsset(asset.id, manual_url))
        logger.warning(f"[手动] {asset.label} 需要手动下载: {manual_url}")

    async def fetch(self, asset: AssetDescriptor, slot: DownloadSlot) -> AssetOutcome:
        """
        在指定槽位上获取资源

        按状态循环，直到下载完成、用户放弃或目录查询出错。
        """
        upper_label = asset.label[:1].upper() + asset.label[1:]
        candidates = list(asset.candidate_urls)
        url: Optional[str] = candidates.pop(0) if candidates else None
        file_name = asset.file_name
        file_id = asset.catalog.file_id if asset.catalog else None
        game_versions = list(asset.catalog.game_versions) if asset.catalog else []
        variants: List[ModVariant] = []
        path = self._path_for(asset, file_name)
        written = 0

        state = ResolveState.RESOLVING
        while True:
            if state is ResolveState.RESOLVING:
                path = self._path_for(asset, file_name)
                if os.path.exists(path):
                    await self.prompter.notify(
                        f"{upper_label} already downloaded! Skipping...", fg="green"
                    )
                    return AssetOutcome(asset, AssetStatus.SKIPPED, path=path, url=url)

                progress = partial(self.renderer.report, slot, asset.tag, asset.name)
                try:
                    written = await self.executor.download(url, path, progress)
                    state = ResolveState.DOWNLOADED
                except DownloadError as e:
                    logger.debug(f"[错误] {asset.label}: {e}")
                    state = ResolveState.FAILED
                finally:
                    await self.renderer.clear(slot)

            elif state is ResolveState.DOWNLOADED:
                await self.prompter.notify(f"{upper_label} loaded.", fg="green")
                return AssetOutcome(
                    asset,
                    AssetStatus.DOWNLOADED,
                    path=path,
                    url=url,
                    bytes_downloaded=written,
                )

            elif state is ResolveState.FAILED:
                await self.prompter.notify(
                    f"Error on loading {asset.label}. \t FileName: {file_name}",
                    fg="red",
                )
                if candidates:
                    url = candidates.pop(0)
                    state = ResolveState.RESOLVING
                elif (
                    self.config.skip_optional
                    or asset.catalog is None
                    or self.catalog is None
                ):
                    state = ResolveState.GIVE_UP
                else:
                    state = ResolveState.ASK_VARIANT

            elif state is ResolveState.ASK_VARIANT:
                retry = await self._ask_yes_no(
                    f"Load another version of {asset.label}? (y/n)"
                )
                state = ResolveState.FETCH_VARIANTS if retry else ResolveState.GIVE_UP

            elif state is ResolveState.FETCH_VARIANTS:
                loader, version = parse_compatibility(game_versions)
                try:
                    files = await self.catalog.get_mod_files(
                        asset.catalog.project_id, version, loader
                    )
                except CatalogError as e:
                    logger.error(f"[错误] 获取 {asset.label} 的文件列表失败: {e}")
                    await self.prompter.notify(
                        f"File data loading error: {e}", fg="red"
                    )
                    return AssetOutcome(asset, AssetStatus.ABANDONED, url=url)

                variants = [
                    variant
                    for variant in (ModVariant.from_file(f) for f in files)
                    if variant is not None
                ]
                logger.debug(f"[版本] {asset.label} 找到 {len(variants)} 个可用版本")
                state = (
                    ResolveState.PICK_VARIANT if variants else ResolveState.NO_VARIANTS
                )

            elif state is ResolveState.NO_VARIANTS:
                manual_url = self._manual_url(asset, file_id, url)
                self._record(asset, manual_url)
                await self.prompter.notify(
                    f"Another variants not found! You can load manually: {manual_url}",
                    fg="red",
                )
                return AssetOutcome(asset, AssetStatus.UNRESOLVED, url=url)

            elif state is ResolveState.PICK_VARIANT:
                index = await self._ask_index(
                    f"Variants (0-{len(variants) - 1}):",
                    [variant.file_name for variant in variants],
                )
                chosen = variants[index]
                url = chosen.url
                file_name = chosen.file_name
                file_id = chosen.file_id
                game_versions = list(chosen.game_versions)
                state = ResolveState.RESOLVING

            elif state is ResolveState.GIVE_UP:
                manual_url = self._manual_url(asset, file_id, url)
                self._record(asset, manual_url)
                await self.prompter.notify(
                    f"You can load manually: {manual_url}", fg="red"
                )
                return AssetOutcome(asset, AssetStatus.UNRESOLVED, url=url)

    @staticmethod
    def _manual_url(
        asset: AssetDescriptor, file_id: Optional[int], url: Optional[str]
    ) -> str:
        if asset.catalog is not None and file_id is not None:
            return f"{asset.catalog.website_url}/files/{file_id}"
        return asset.manual_url
