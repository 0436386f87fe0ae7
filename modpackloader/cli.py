"""
CLI 模块

命令行接口实现。
"""

import asyncio
from typing import Optional

import click
from loguru import logger

from modpackloader import __version__
from modpackloader.console import Console
from modpackloader.exceptions import LoaderError, ManifestError
from modpackloader.logger import console_logging, setup_logger
from modpackloader.models import (
    LoaderConfig,
    ModpackFormat,
    RunReport,
    load_config_file,
)
from modpackloader.orchestrator import LoaderOrchestrator
from modpackloader.services import detect_format

EXIT_OK = 0
EXIT_MANIFEST = -1
EXIT_API_KEY = -2


def build_config(config_path: Optional[str], **options) -> LoaderConfig:
    """合并配置文件与命令行参数，命令行优先"""
    base = LoaderConfig.from_dict(load_config_file(config_path)) if config_path else LoaderConfig()
    return base.merged(options)


async def run_async(config: LoaderConfig, console: Console) -> RunReport:
    """异步运行"""
    orchestrator = LoaderOrchestrator(config, console=console)
    report = await orchestrator.run()
    stats = orchestrator.get_stats()
    logger.success(
        f"完成! 共 {stats['total']} 个资源, {len(stats['manual'])} 个需要手动下载"
    )
    return report


@click.command()
@click.option("-i", "--input", "input_path", required=True, help="整合包文件 (.zip / .mrpack)")
@click.option("-o", "--output", required=True, help="输出目录")
@click.option("-k", "--key", "api_key", envvar="CURSEFORGE_API_KEY", help="CurseForge API Key")
@click.option("-p", "--skip-option-pick", "skip_optional", is_flag=True, help="自动跳过可选资源的询问")
@click.option("-c", "--client", "include_client", is_flag=True, help="加载客户端必需的资源")
@click.option("-s", "--server", "include_server", is_flag=True, help="加载服务端必需的资源")
@click.option("--slots", type=click.IntRange(min=1), help="最大并发下载数 (默认 8)")
@click.option("--timeout", type=click.FloatRange(min=0, min_open=True), help="单个文件下载超时（秒）")
@click.option("--config", "config_path", type=click.Path(exists=True), help="配置文件 (TOML/JSON/YAML)")
@click.option("--debug", is_flag=True, help="启用调试模式")
@click.version_option(version=__version__)
@click.pass_context
def main(
    ctx: click.Context,
    input_path: str,
    output: str,
    api_key: Optional[str],
    skip_optional: bool,
    include_client: bool,
    include_server: bool,
    slots: Optional[int],
    timeout: Optional[float],
    config_path: Optional[str],
    debug: bool,
):
    """ModpackLoader - Minecraft 整合包下载工具"""
    level = "DEBUG" if debug else None
    setup_logger(level=level)

    try:
        config = build_config(
            config_path,
            input=input_path,
            output=output,
            api_key=api_key,
            skip_optional=skip_optional or None,
            include_client=include_client or None,
            include_server=include_server or None,
            slots=slots,
            timeout=timeout,
        )
    except LoaderError as e:
        raise click.ClickException(str(e))

    if detect_format(config.input) is ModpackFormat.MODRINTH:
        click.echo("Starting load of Modrinth Modpack...")
    else:
        click.echo("Starting load of Curseforge Modpack...")
        if not config.api_key:
            click.echo("Curseforge Api Key is missing!", err=True)
            ctx.exit(EXIT_API_KEY)

    console = Console(rows=config.slots)

    try:
        with console_logging(console, level):
            asyncio.run(run_async(config, console))
    except ManifestError as e:
        logger.error(f"清单错误: {e}")
        ctx.exit(EXIT_MANIFEST)
    except LoaderError as e:
        logger.error(f"运行错误: {e}")
        raise click.ClickException(str(e))
    except KeyboardInterrupt:
        logger.warning("已取消")
        ctx.exit(130)

    ctx.exit(EXIT_OK)


if __name__ == "__main__":
    main()
