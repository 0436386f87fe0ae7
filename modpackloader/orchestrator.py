"""
主协调器

按清单顺序决定每个资源是否加载，把资源分配到下载槽位并发下载，
全部完成后解压覆盖文件并输出汇总信息。
"""

import asyncio
import os
from typing import List, Optional

from loguru import logger

from modpackloader.console import Console
from modpackloader.download import (
    DownloadExecutor,
    DownloadSlot,
    ProgressRenderer,
    SlotPool,
)
from modpackloader.exceptions import LoaderError
from modpackloader.models import (
    AssetDescriptor,
    AssetOutcome,
    AssetStatus,
    LoaderConfig,
    ModpackInfo,
    RunReport,
)
from modpackloader.packager import OverrideExtractor
from modpackloader.services import (
    AssetResolver,
    CurseForgeClient,
    Prompter,
    TerminalPrompter,
    open_archive,
    open_manifest,
)


class LoaderOrchestrator:
    """ModpackLoader 主协调器"""

    def __init__(
        self,
        config: LoaderConfig,
        console: Optional[Console] = None,
        prompter: Optional[Prompter] = None,
        executor: Optional[DownloadExecutor] = None,
        catalog: Optional[CurseForgeClient] = None,
    ):
        self.config = config
        self.pool = SlotPool(config.slots)
        self.console = console or Console(rows=config.slots)
        self.renderer = ProgressRenderer(self.console, self.pool)
        self.prompter = prompter or TerminalPrompter(self.console, self.pool)

        self._owned_executor = executor is None
        self.executor = executor or DownloadExecutor(
            timeout=config.timeout, user_agent=config.user_agent
        )

        self._owned_catalog = catalog is None and bool(config.api_key)
        if catalog is None and config.api_key:
            catalog = CurseForgeClient(config.api_key, user_agent=config.user_agent)
        self.catalog = catalog

        self.extractor = OverrideExtractor()
        self.report = RunReport()
        self.resolver = AssetResolver(
            config,
            self.executor,
            self.renderer,
            self.prompter,
            self.report.unresolved,
            catalog=self.catalog,
        )
        self._tasks: List[asyncio.Task] = []

    async def run(self) -> RunReport:
        """运行完整的加载流程"""
        archive = open_archive(self.config.input)
        try:
            reader = open_manifest(archive, self.config.input, self.config, self.catalog)
            info = reader.info
            logger.info(
                f"开始加载 {info.format.value} 整合包 '{info.name}' "
                f"({info.asset_count} 个资源, {self.config.slots} 并发)"
            )
            os.makedirs(self.config.output, exist_ok=True)

            self.console.prepare()
            try:
                async for asset in reader.assets():
                    await self._schedule(asset)

                await self.pool.wait_all_released()
                await asyncio.gather(*self._tasks)
            except BaseException:
                await self._cancel_pending()
                raise
            finally:
                self.console.finish()

            self.report.stats.failed += len(reader.errors)

            self.console.echo("Asset loading complete! Applying overrides...")
            self.report.overrides = await self.extractor.extract(
                archive, info.override_prefixes, self.config.output
            )
            self.console.echo(f"Overrides applied! ({len(self.report.overrides)} files)")

            self.report.version_lines = list(info.version_lines)
            self._print_summary(info)
            return self.report

        finally:
            archive.close()
            await self.close()

    async def _schedule(self, asset: AssetDescriptor):
        """决定资源是否加载，并在空闲槽位上启动下载"""
        self.report.stats.total += 1

        if not await self.resolver.decide(asset):
            self._record(AssetOutcome(asset, AssetStatus.DECLINED))
            logger.debug(f"[跳过] 可选资源 {asset.label} 未加载")
            return

        slot = await self.pool.acquire()
        task = asyncio.create_task(
            self._run_asset(asset, slot), name=f"asset-{asset.id}"
        )
        self._tasks.append(task)

    async def _run_asset(self, asset: AssetDescriptor, slot: DownloadSlot) -> AssetOutcome:
        try:
            outcome = await self.resolver.fetch(asset, slot)
        except LoaderError as e:
            logger.error(f"[错误] 处理 {asset.label} 失败: {e}")
            outcome = AssetOutcome(asset, AssetStatus.ABANDONED)
        finally:
            await self.pool.release(slot)

        self._record(outcome)
        return outcome

    def _record(self, outcome: AssetOutcome):
        self.report.outcomes.append(outcome)
        self.report.stats.record(outcome)

    async def _cancel_pending(self):
        """取消未完成的下载，临时文件由执行器清理"""
        pending = [task for task in self._tasks if not task.done()]
        if not pending:
            return
        logger.warning(f"[取消] 正在取消 {len(pending)} 个下载任务...")
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)

    def _print_summary(self, info: ModpackInfo):
        stats = self.report.stats
        self.console.echo(
            f"下载完成: {stats.completed} 成功, {stats.skipped} 已存在, "
            f"{stats.declined} 未选择, {stats.failed} 失败",
            fg="green" if stats.failed == 0 else "yellow",
        )

        if self.report.unresolved:
            self.console.echo("Manual Loading:")
            for item in self.report.unresolved:
                self.console.echo(item.manual_url, fg="red")

        self.console.echo("Version Info:")
        self.console.echo(f"Modpack Name: {info.name}")
        self.console.echo(f"Modpack Version: {info.version}")
        for line in info.version_lines:
            self.console.echo(line)

    def get_stats(self) -> dict:
        """获取统计信息"""
        stats = self.report.stats
        return {
            "total": stats.total,
            "completed": stats.completed,
            "skipped": stats.skipped,
            "declined": stats.declined,
            "failed": stats.failed,
            "manual": self.report.manual_urls,
        }

    async def close(self):
        if self._owned_executor:
            await self.executor.close()
        if self._owned_catalog and self.catalog is not None:
            await self.catalog.close()
