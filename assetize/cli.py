"""assetize 命令行接口"""

from __future__ import annotations

import asyncio
import logging
import os

import click

from assetize import __version__
from assetize.core.config import DEFAULT_CONFIG_FILE, Config, set_config
from assetize.core.exceptions import AssetizeError, NothingToDoError
from assetize.core.pipeline import Pipeline
from assetize.utils.logger import setup_logging

logger = logging.getLogger(__name__)

# 非业务异常的文件系统错误统一使用 EX_IOERR
IO_ERROR_EXIT = 74


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.argument("modules", nargs=-1)
@click.option("--config", "config_path", default=DEFAULT_CONFIG_FILE, help="配置文件路径")
@click.option("--assets-dir", default=None, help="资源输出目录（默认 assets）")
@click.option("--manifest", default=None, help="项目清单路径（默认 package.json）")
@click.option("--npm", "npm_command", default=None, help="npm 可执行文件")
@click.version_option(version=__version__)
@click.pass_context
def main(
    ctx: click.Context,
    modules: tuple[str, ...],
    config_path: str,
    assets_dir: str | None,
    manifest: str | None,
    npm_command: str | None,
) -> None:
    """assetize [MODULES]... - 把 npm 包转换为浏览器可直接加载的资源目录

    安装 package.json 中 assetDependencies 声明的全部包（含传递依赖），
    然后把其中的 import 改写为带扩展名的相对路径。MODULES 为额外需要改写的
    已落地模块。
    """
    setup_logging(
        level=os.getenv("ASSETIZE_LOG_LEVEL", "INFO"),
        json_output=os.getenv("ASSETIZE_LOG_JSON", "") == "1",
    )
    try:
        cfg = Config.from_file(config_path).override(
            assets_dir=assets_dir, manifest=manifest, npm_command=npm_command,
        )
        set_config(cfg)
        summary = asyncio.run(Pipeline(cfg).run(modules))
    except NothingToDoError as e:
        logger.debug("%s", e)
        click.echo(ctx.get_help())
        ctx.exit(e.exit_code)
    except AssetizeError as e:
        logger.error("[%s] %s", e.code, e)
        ctx.exit(e.exit_code)
    except OSError as e:
        logger.error("[IO_ERROR] %s", e)
        ctx.exit(IO_ERROR_EXIT)

    click.echo(
        f"已安装 {len(summary.installed)} 个包，改写 {summary.total_rewritten} 处 import"
    )
